"""
Match formatting.

A match is the canonical string that groups every event belonging to one page.
It is built from the components of the page URL, so that e.g. a fragment change
does not produce a different page by default.
"""

import re
from urllib.parse import SplitResult, urlsplit

from highlighter.domain.common.exceptions import ValidationError

# Ports omitted from a URL's canonical form when they are the scheme default
DEFAULT_PORTS = {
    "ftp": 21,
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}

# Characters whose escapes survive URI decoding, so the decoded match is still a URI
RESERVED_CHARACTERS = frozenset(";/?:@&=+$,#")

_ESCAPE_RUN = re.compile(r"(?:%[0-9A-Fa-f]{2})+")


def format_match(
    url: str,
    *,
    scheme: bool = True,
    query: bool = True,
    fragment: bool = False,
    decode: bool = True,
) -> str:
    """
    Form the string that a page URL will be associated with in the store.

    Args:
        url: Absolute URL of the page
        scheme: Prefix the match with ``<scheme>://``
        query: Append the query string (``?p=q``) when present
        fragment: Append the fragment (``#id``) when present
        decode: URI-decode the result (reserved character escapes are kept)

    Returns:
        Match string, e.g. ``https://example.com:8080/a/b?p=q``

    Raises:
        ValidationError: If the URL has no scheme or host, or decoding fails
    """
    parts = _split(url)

    # example.com
    match = _ascii_host(parts.hostname or "")
    if ":" in match:
        match = f"[{match}]"

    # https://
    if scheme:
        match = f"{parts.scheme}://{match}"

    # :8080
    port = _explicit_port(parts)
    if port is not None:
        match += f":{port}"

    # /a/b
    match += remove_dot_segments(parts.path) if parts.path else "/"

    # ?p=q
    if query and parts.query:
        match += f"?{parts.query}"

    # #id
    if fragment and parts.fragment:
        match += f"#{parts.fragment}"

    return decode_uri(match) if decode else match


def decode_uri(value: str) -> str:
    """
    Decode percent-escapes the way a URI (not a URI component) is decoded.

    Escapes of reserved characters are left untouched.

    Raises:
        ValidationError: If an escape sequence is not valid UTF-8
    """
    return _ESCAPE_RUN.sub(_decode_escape_run, value)


def _decode_escape_run(run: re.Match[str]) -> str:
    text = run.group(0)
    escapes = [text[i : i + 3] for i in range(0, len(text), 3)]

    try:
        decoded = bytes(int(escape[1:], 16) for escape in escapes).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError("Malformed URI sequence", field="url", value=text) from e

    result: list[str] = []
    offset = 0
    for char in decoded:
        width = len(char.encode("utf-8"))
        result.append(escapes[offset] if char in RESERVED_CHARACTERS else char)
        offset += width
    return "".join(result)


def _split(url: str) -> SplitResult:
    try:
        parts = urlsplit(url.strip())
        # Accessing port validates it
        _ = parts.port
    except ValueError as e:
        raise ValidationError(f"Invalid URL: {e}", field="url", value=url) from e

    if not parts.scheme or not parts.hostname:
        raise ValidationError("URL must be absolute", field="url", value=url)
    return parts


def _explicit_port(parts: SplitResult) -> int | None:
    port = parts.port
    if port is None or DEFAULT_PORTS.get(parts.scheme) == port:
        return None
    return port


def remove_dot_segments(path: str) -> str:
    """
    Resolve ``.`` and ``..`` segments of an absolute path (RFC 3986, section 5.2.4).

    ``"/a/../b"`` -> ``"/b"``, ``"/a/b/.."`` -> ``"/a/"``. ``..`` never climbs above the root.
    """
    segments = path.split("/")[1:]
    resolved: list[str] = []

    for index, segment in enumerate(segments):
        if segment in (".", ".."):
            if segment == ".." and resolved:
                resolved.pop()
            # a trailing dot segment still denotes a directory
            if index == len(segments) - 1:
                resolved.append("")
        else:
            resolved.append(segment)

    return "/" + "/".join(resolved)


def _ascii_host(hostname: str) -> str:
    """Internationalized host names in their ASCII (punycode) form."""
    if hostname.isascii():
        return hostname
    try:
        return hostname.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise ValidationError(f"Invalid host name: {e}", field="url", value=hostname) from e
