"""Minimal HTTP request-line parsing and a fixed welcome-page response."""

from __future__ import annotations

from typing import Optional

CRLF = b"\r\n"
DOUBLE_CRLF = b"\r\n\r\n"

WELCOME_BODY = """<html>
<head>
<title>Welcome to loopserve!</title>
<style>
    body {
        width: 35em;
        margin: 0 auto;
        font-family: Tahoma, Verdana, Arial, sans-serif;
    }
</style>
</head>
<body>
<h1>Welcome to loopserve!</h1>
<p>If you see this page, the web server is successfully installed and
working. Further configuration is required.</p>

<p><em>Thank you for using loopserve.</em></p>
</body>
</html>"""


def search_crlf(data: bytes, start: int, end: int) -> Optional[int]:
    """Return the index of the first CRLF inside ``data[start:end]``, or None."""
    found = data.find(CRLF, start, end)
    return None if found == -1 else found


class HttpContext:
    """Parses one request head from a buffer and builds the reply."""

    def __init__(self) -> None:
        self.method = ""
        self.path = ""
        self.version = ""

    def parse_request(self, buf: bytearray) -> bool:
        """Parse the request line and consume the head from ``buf``.

        Returns False, leaving ``buf`` untouched, when no complete head is
        present or no line break precedes the blank line.
        """
        end_of_headers = buf.find(DOUBLE_CRLF)
        if end_of_headers == -1:
            return False
        end_of_line = search_crlf(buf, 0, end_of_headers)
        if end_of_line is None:
            return False

        fields = bytes(buf[:end_of_line]).decode("latin-1").split()
        fields += [""] * (3 - len(fields))
        self.method, self.path, self.version = fields[:3]

        del buf[: end_of_headers + len(DOUBLE_CRLF)]
        return True

    def make_response(self) -> str:
        """Return a complete keep-alive 200 response carrying the welcome page."""
        length = len(WELCOME_BODY.encode("utf-8"))
        return (
            "HTTP/1.1 200 OK\r\n"
            "Content-Type: text/html\r\n"
            f"Content-Length: {length}\r\n"
            "Connection: keep-alive\r\n"
            "\r\n"
            f"{WELCOME_BODY}"
        )