from custombangs.adapters.proxy_plugin import descriptor_from_request


class _Request:
    def __init__(self, host, path, port=80, body=None, headers=None):
        self.host = host
        self.path = path
        self.port = port
        self.body = body
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}

    def has_header(self, key):
        return key.lower() in self.headers

    def header(self, key):
        return self.headers[key.lower()]


def test_descriptor_from_get_request():
    descriptor = descriptor_from_request(_Request(b"www.google.com", b"/search?q=%21w+einstein"))
    assert descriptor.url == "http://www.google.com/search?q=%21w+einstein"
    assert descriptor.form_data is None
    assert descriptor.tab_id is None


def test_descriptor_keeps_non_default_port():
    descriptor = descriptor_from_request(_Request(b"localhost", b"/?q=x", port=8080))
    assert descriptor.url == "http://localhost:8080/?q=x"


def test_descriptor_parses_form_body():
    request = _Request(
        b"html.duckduckgo.com",
        b"/html/",
        port=443,
        body=b"q=%21w+einstein&b=",
        headers={b"Content-Type": b"application/x-www-form-urlencoded; charset=UTF-8"},
    )
    descriptor = descriptor_from_request(request)
    assert descriptor.url == "https://html.duckduckgo.com/html/"
    assert descriptor.form_data["q"] == ["!w einstein"]


def test_json_body_is_not_parsed_as_form():
    request = _Request(b"api.example", b"/", body=b'{"q": "!w"}', headers={b"content-type": b"application/json"})
    assert descriptor_from_request(request).form_data is None


def test_request_without_host():
    assert descriptor_from_request(_Request(None, b"/")) is None
