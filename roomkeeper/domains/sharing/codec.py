"""Encode and decode share addresses.

Two address forms are supported:

* query form, used for new links::

    /r/{roomId}?p={pageId}&d=v{x}.{y}.{width}.{height}

* path form, kept for older links::

    /board/{roomId}[.{pageToken}][.v{x}.{y}.{width}.{height}]

Viewport numbers are written without a decimal point (``0.5`` becomes
``5e-1``) so the ``.`` separator stays unambiguous; any standard float parser
reads them back to the same value. Decoding never raises: a malformed page or
viewport decodes as absent, and only a missing room id makes the input "not an
address" (``None``).
"""

import math
import re
from decimal import Decimal
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

from roomkeeper.domains.sharing.entities import ShareAddress, Viewport

QUERY_FORM = "query"
PATH_FORM = "path"

_NUMBER_RE = re.compile(r"^-?\d+(?:[eE]-?\d+)?$")
_INDEX_RE = re.compile(r"^\d+$")
_MAX_INDEX_DIGITS = 9
_QUERY_PATH_RE = re.compile(r"^/(r|rooms|ro|p)/([^/]+)/?$")
_BOARD_PATH_RE = re.compile(r"^/board/([^/]+)/?$")


def format_number(value: float) -> str:
    """Shortest dot-free rendering that parses back to the same float"""
    value = float(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    mantissa = "".join(str(digit) for digit in digits)
    return f"{'-' if sign else ''}{mantissa}e{exponent}"


def _quote_token(value: str) -> str:
    # "." separates path-form tokens, so it is escaped along with everything reserved
    return quote(value, safe="").replace(".", "%2E")


class ShareAddressCodec:
    """Pure encode/decode of (room, page, viewport) addresses"""

    @staticmethod
    def encode_viewport(viewport: Optional[Viewport]) -> Optional[str]:
        """Viewport token ``v{x}.{y}.{w}.{h}``; None unless all four values are finite"""
        if viewport is None or not viewport.is_finite():
            return None
        return "v" + ".".join(format_number(value) for value in viewport.as_tuple())

    @staticmethod
    def decode_viewport(token: Optional[str]) -> Optional[Viewport]:
        """Parse a viewport token; anything not exactly ``v<num>.<num>.<num>.<num>`` is None"""
        if not token or not token.startswith("v"):
            return None

        parts = token[1:].split(".")
        if len(parts) != 4:
            return None

        values = []
        for part in parts:
            if not _NUMBER_RE.match(part):
                return None
            try:
                number = float(part)
            except ValueError:
                return None
            if not math.isfinite(number):
                return None
            values.append(number)

        return Viewport(*values)

    @staticmethod
    def encode_query(
        room_id: str,
        page_id: Optional[str] = None,
        viewport: Optional[Viewport] = None,
        prefix: str = "/r"
    ) -> str:
        """Build a query-form address; ``prefix="/p"`` builds a publish address"""
        if not room_id:
            raise ValueError("room_id is required")

        path = f"{prefix}/{quote(room_id, safe='')}"
        params = []
        if page_id:
            params.append(("p", page_id))
        viewport_token = ShareAddressCodec.encode_viewport(viewport)
        if viewport_token:
            params.append(("d", viewport_token))

        if params:
            path += "?" + urlencode(params, quote_via=quote)
        return path

    @staticmethod
    def encode_path(
        room_id: str,
        page_id: Optional[str] = None,
        viewport: Optional[Viewport] = None,
        page_index: Optional[int] = None
    ) -> str:
        """Build a path-form address.

        ``page_index`` is written as a bare integer. A ``page_id`` is written
        percent-encoded with its first character escaped when it would read
        as an index or a viewport token, so it decodes back as a page id.
        """
        if not room_id:
            raise ValueError("room_id is required")

        tokens = [_quote_token(room_id)]
        if page_index is not None:
            if page_index < 0:
                raise ValueError("page_index must be non-negative")
            tokens.append(str(page_index))
        elif page_id:
            token = _quote_token(page_id)
            if token[0] == "v" or token[0].isdigit():
                token = "%{:02X}".format(ord(token[0])) + token[1:]
            tokens.append(token)

        viewport_token = ShareAddressCodec.encode_viewport(viewport)
        if viewport_token:
            tokens.append(viewport_token)

        return "/board/" + ".".join(tokens)

    @staticmethod
    def decode_query(address: str) -> Optional[ShareAddress]:
        """Decode ``/r/{roomId}?p=..&d=..`` (also ``/rooms``, ``/ro`` and ``/p``)"""
        try:
            parts = urlsplit(address)
        except ValueError:
            return None
        match = _QUERY_PATH_RE.match(parts.path)
        if not match:
            return None

        room_id = unquote(match.group(2))
        if not room_id:
            return None

        query = parse_qs(parts.query, keep_blank_values=True)
        page_id = (query.get("p") or [None])[0] or None
        viewport = ShareAddressCodec.decode_viewport((query.get("d") or [None])[0])

        return ShareAddress(
            room_id=room_id,
            page_id=page_id,
            viewport=viewport,
            form=QUERY_FORM,
            is_publish=match.group(1) == "p",
        )

    @staticmethod
    def decode_path(address: str) -> Optional[ShareAddress]:
        """Decode ``/board/{roomId}[.{page}][.v{x}.{y}.{w}.{h}]``"""
        try:
            path = urlsplit(address).path
        except ValueError:
            return None
        match = _BOARD_PATH_RE.match(path)
        if not match:
            return None
        return ShareAddressCodec.decode_board_segment(match.group(1))

    @staticmethod
    def decode_board_segment(segment: str) -> Optional[ShareAddress]:
        """Decode the dot-delimited segment that follows ``/board/``"""
        tokens = segment.split(".")
        room_id = unquote(tokens[0])
        if not room_id:
            return None

        viewport_at = next(
            (index for index, token in enumerate(tokens[1:], start=1) if token.startswith("v")),
            None,
        )

        page_index = None
        page_id = None
        page_end = viewport_at if viewport_at is not None else len(tokens)
        if page_end > 1:
            page_token = tokens[1]
            if _INDEX_RE.match(page_token):
                # An overlong index is malformed and decodes as absent
                if len(page_token) <= _MAX_INDEX_DIGITS:
                    page_index = int(page_token)
            elif page_token and page_end == 2:
                page_id = unquote(page_token)

        viewport = None
        if viewport_at is not None:
            viewport = ShareAddressCodec.decode_viewport(".".join(tokens[viewport_at:]))

        return ShareAddress(
            room_id=room_id,
            page_id=page_id,
            viewport=viewport,
            page_index=page_index,
            form=PATH_FORM,
        )

    @staticmethod
    def decode(address: str) -> Optional[ShareAddress]:
        """Decode either form from a full URL or a bare path"""
        if not address:
            return None
        try:
            path = urlsplit(address).path
        except ValueError:
            return None
        if path.startswith("/board/"):
            return ShareAddressCodec.decode_path(address)
        return ShareAddressCodec.decode_query(address)
