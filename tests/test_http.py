import pytest

from ananas_rpc.http import (
    HttpCode,
    HttpMethod,
    HttpParseError,
    HttpRequest,
    HttpRequestParser,
    HttpResponse,
    HttpResponseParser,
)

REQUEST = (
    b"POST /api/items?page=2 HTTP/1.1\r\n"
    b"Host: example.com\r\n"
    b"Content-Length: 5\r\n"
    b"\r\n"
    b"hello"
)

RESPONSE = (
    b"HTTP/1.1 404 Not Found\r\n"
    b"Content-Length: 4\r\n"
    b"\r\n"
    b"gone"
)


def feed(parser, chunks):
    pending = b""
    for chunk in chunks:
        pending += chunk
        used = parser.parse(pending)
        pending = pending[used:]
    return pending


def test_parse_full_request():
    parser = HttpRequestParser()
    used = parser.parse(REQUEST)
    assert used == len(REQUEST)
    assert parser.done
    req = parser.request
    assert req.method is HttpMethod.POST
    assert req.method_string() == "POST"
    assert req.path == "/api/items"
    assert req.query == "page=2"
    assert req.get_header("Host") == "example.com"
    assert req.get_header("Content-Length") == "5"
    assert req.body == b"hello"


def test_parse_request_in_pieces_matches_whole():
    whole = HttpRequestParser()
    whole.parse(REQUEST)

    pieces = HttpRequestParser()
    chunks = [REQUEST[:7], REQUEST[7:40], REQUEST[40:50], REQUEST[50:-3], REQUEST[-3:]]
    left = feed(pieces, chunks)
    assert left == b""
    assert pieces.done
    assert pieces.request == whole.request


def test_body_waits_for_more_data():
    parser = HttpRequestParser()
    head = b"PUT /x HTTP/1.1\r\nContent-Length: 5\r\n\r\nhe"
    assert parser.parse(head) == len(head)
    assert parser.wait_more
    assert not parser.done
    assert parser.parse(b"llo") == 3
    assert parser.done
    assert parser.request.body == b"hello"


def test_request_stops_at_message_end():
    parser = HttpRequestParser()
    data = REQUEST + b"GET / HTTP/1.1\r\n\r\n"
    assert parser.parse(data) == len(REQUEST)
    assert parser.done
    # Once done, nothing more is consumed until reset.
    assert parser.parse(data[len(REQUEST):]) == 0


def test_reset_allows_reuse():
    parser = HttpRequestParser()
    parser.parse(REQUEST)
    parser.reset()
    assert not parser.done
    assert parser.request == HttpRequest()
    data = b"DELETE /thing HTTP/1.1\r\n\r\n"
    assert parser.parse(data) == len(data)
    assert parser.request.method is HttpMethod.DELETE
    assert parser.request.path == "/thing"
    assert parser.request.query == ""


def test_header_block_ending_with_data_counts_as_complete():
    parser = HttpRequestParser()
    data = b"GET /index HTTP/1.1\r\nHost: example.com\r\n"
    assert parser.parse(data) == len(data)
    assert parser.done
    assert parser.request.body == b""


def test_headers_trimmed_and_first_value_kept():
    parser = HttpRequestParser()
    data = b"GET /a HTTP/1.1\r\n  X-Tag  :  one  \r\nX-Tag: two\r\n\r\n"
    parser.parse(data)
    assert parser.request.get_header("X-Tag") == "one"
    assert parser.request.get_header("Missing") == ""


def test_bad_content_length_means_empty_body():
    parser = HttpRequestParser()
    data = b"POST /a HTTP/1.1\r\nContent-Length: abc\r\n\r\nxyz"
    assert parser.parse(data) == len(data) - 3
    assert parser.done
    assert parser.request.body == b""


def test_multiple_spaces_in_request_line():
    parser = HttpRequestParser()
    parser.parse(b"GET    /spaced HTTP/1.1\r\n\r\n")
    assert parser.request.path == "/spaced"


def test_unknown_method_is_error():
    parser = HttpRequestParser()
    with pytest.raises(HttpParseError):
        parser.parse(b"FETCH /index HTTP/1.1\r\n\r\n")
    assert parser.error
    with pytest.raises(HttpParseError):
        parser.parse(b"GET / HTTP/1.1\r\n\r\n")


def test_short_request_line_is_error():
    parser = HttpRequestParser()
    with pytest.raises(HttpParseError):
        parser.parse(b"GET / HTTP\r\n\r\n")
    assert parser.error


def test_header_without_colon_is_error():
    parser = HttpRequestParser()
    with pytest.raises(HttpParseError):
        parser.parse(b"GET /index HTTP/1.1\r\nNoColonHere\r\n\r\n")


def test_short_header_line_is_error():
    parser = HttpRequestParser()
    with pytest.raises(HttpParseError):
        parser.parse(b"GET /index HTTP/1.1\r\na:\r\n\r\n")


def test_partial_request_line_waits():
    parser = HttpRequestParser()
    assert parser.parse(b"GET /ind") == 0
    assert parser.wait_more
    assert not parser.error


def test_overlong_request_line_is_error():
    parser = HttpRequestParser()
    with pytest.raises(HttpParseError):
        parser.parse(b"GET /" + b"a" * 2000)


def test_set_method_rejects_unknown():
    req = HttpRequest()
    with pytest.raises(ValueError):
        req.set_method("PATCH")
    assert req.method is HttpMethod.INVALID
    req.set_method("HEAD")
    assert req.method_string() == "HEAD"


def test_invalid_request_encodes_to_nothing():
    assert HttpRequest(path="/x").encode() == b""


def test_request_encode_wire_format():
    req = HttpRequest(path="/index", query="a=1")
    req.set_method("GET")
    req.set_header("Host", "example.com")
    assert req.encode() == b"GET /index?a=1 HTTP/1.1\r\nHost:example.com\r\n\r\n"


def test_request_round_trip():
    req = HttpRequest(path="/submit", query="k=v")
    req.set_method("POST")
    req.set_header("Content-Length", "4")
    req.set_header("Accept", "text/html")
    req.append_body(b"da")
    req.append_body(b"ta")
    parser = HttpRequestParser()
    wire = req.encode()
    assert parser.parse(wire) == len(wire)
    assert parser.done
    assert parser.request == req


def test_parse_full_response():
    parser = HttpResponseParser()
    assert parser.parse(RESPONSE) == len(RESPONSE)
    assert parser.done
    rsp = parser.response
    assert rsp.code == HttpCode.NOT_FOUND
    assert rsp.phrase == "Not Found"
    assert rsp.body == b"gone"


def test_response_without_length_has_empty_body():
    parser = HttpResponseParser()
    data = b"HTTP/1.1 204 No Content\r\n\r\n"
    assert parser.parse(data) == len(data)
    assert parser.done
    assert parser.response.code == HttpCode.NO_CONTENT
    assert parser.response.body == b""


def test_response_headers_wait_for_blank_line():
    parser = HttpResponseParser()
    data = b"HTTP/1.1 200 OK\r\nServer: x\r\n"
    assert parser.parse(data) == len(data)
    assert parser.wait_more
    assert not parser.done
    assert parser.parse(b"\r\n") == 2
    assert parser.done


def test_response_in_pieces():
    parser = HttpResponseParser()
    left = feed(parser, [RESPONSE[:5], RESPONSE[5:30], RESPONSE[30:]])
    assert left == b""
    assert parser.done
    assert parser.response.body == b"gone"


def test_response_non_numeric_code_is_error():
    parser = HttpResponseParser()
    with pytest.raises(HttpParseError):
        parser.parse(b"HTTP/1.1 abc Bad\r\n\r\n")
    assert parser.error


def test_response_without_phrase_separator_is_error():
    parser = HttpResponseParser()
    with pytest.raises(HttpParseError):
        parser.parse(b"HTTP/1.1 200\r\n\r\n")


def test_response_reset():
    parser = HttpResponseParser()
    parser.parse(RESPONSE)
    parser.reset()
    assert parser.response == HttpResponse()
    assert not parser.done


def test_response_round_trip():
    rsp = HttpResponse(code=HttpCode.CREATED, phrase="Created")
    rsp.set_header("Content-Length", "3")
    rsp.append_body(b"abc")
    wire = rsp.encode()
    assert wire.startswith(b"HTTP/1.1 201 Created\r\n")
    parser = HttpResponseParser()
    assert parser.parse(wire) == len(wire)
    assert parser.response == rsp