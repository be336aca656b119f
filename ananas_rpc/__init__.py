"""Wire codecs for a lightweight RPC framework: errors, endpoints, framing, HTTP and Redis parsers."""

__version__ = "0.1.0"
__all__ = ["errors", "endpoint", "http", "redis_protocol", "name_service", "coder"]