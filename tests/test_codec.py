import math

import pytest

from roomkeeper.domains.sharing.codec import ShareAddressCodec, format_number
from roomkeeper.domains.sharing.entities import RoomRoute, RouteKind, Viewport


@pytest.mark.parametrize("value, expected", [
    (1.0, "1"),
    (0, "0"),
    (-3.0, "-3"),
    (0.5, "5e-1"),
    (-12.25, "-1225e-2"),
    (1e20, "1e20"),
])
def test_format_number_is_dot_free(value, expected):
    assert format_number(value) == expected
    assert float(expected) == value


@pytest.mark.parametrize("value", [0.1, 1 / 3, -0.000123, 123456.789, 1.5e-7, 2 ** 60 + 0.0])
def test_format_number_round_trips(value):
    text = format_number(value)
    assert "." not in text
    assert float(text) == value


@pytest.mark.parametrize("room_id, page_id, viewport", [
    ("abc", None, None),
    ("abc", "page:1", None),
    ("abc", None, Viewport(0, 0, 1920, 1080)),
    ("gallery-modern-hall", "page:intro", Viewport(-120.5, 33.25, 800, 600.75)),
    ("room with spaces", "page/odd?&=#", Viewport(0.1, 0.2, 0.3, 0.4)),
])
def test_query_form_round_trip(room_id, page_id, viewport):
    address = ShareAddressCodec.encode_query(room_id, page_id, viewport)
    decoded = ShareAddressCodec.decode(address)

    assert decoded.room_id == room_id
    assert decoded.page_id == page_id
    assert decoded.viewport == viewport
    assert decoded.form == "query"


@pytest.mark.parametrize("room_id, page_id, viewport", [
    ("abc", None, Viewport(1, 2, 3, 4)),
    ("abc", "page:intro", Viewport(-0.5, 10, 1024.125, 768)),
    ("abc", "7up", None),
    ("abc", "viewer-notes", Viewport(0, 0, 10, 10)),
    ("my.room", "page.with.dots", Viewport(1e-3, 2, 3, 4)),
])
def test_path_form_round_trip(room_id, page_id, viewport):
    address = ShareAddressCodec.encode_path(room_id, page_id, viewport)
    decoded = ShareAddressCodec.decode(address)

    assert decoded.room_id == room_id
    assert decoded.page_id == page_id
    assert decoded.page_index is None
    assert decoded.viewport == viewport
    assert decoded.form == "path"


def test_query_form_layout():
    address = ShareAddressCodec.encode_query("abc", "page:1", Viewport(0, 0, 100, 50.5))
    assert address == "/r/abc?p=page%3A1&d=v0.0.100.505e-1"


def test_non_finite_viewport_is_omitted():
    assert ShareAddressCodec.encode_query("abc", None, Viewport(0, math.nan, 1, 1)) == "/r/abc"
    assert ShareAddressCodec.encode_path("abc", None, Viewport(math.inf, 0, 1, 1)) == "/board/abc"


def test_malformed_viewport_degrades_to_absent():
    decoded = ShareAddressCodec.decode("/r/abc?d=vNaN.0.0.0")
    assert decoded.room_id == "abc"
    assert decoded.viewport is None


def test_overlong_page_index_degrades_to_absent():
    decoded = ShareAddressCodec.decode("/board/abc." + "1" * 5000 + ".v1.2.3.4")
    assert decoded.room_id == "abc"
    assert decoded.page_index is None
    assert decoded.page_id is None
    assert decoded.viewport == Viewport(1, 2, 3, 4)

    decoded = ShareAddressCodec.decode("/board/abc.123456789")
    assert decoded.page_index == 123456789


def test_overlong_viewport_number_degrades_to_absent():
    decoded = ShareAddressCodec.decode("/r/abc?d=v" + "9" * 5000 + ".0.0.0")
    assert decoded.room_id == "abc"
    assert decoded.viewport is None


@pytest.mark.parametrize("token", ["v1.2.3", "v1.2.3.4.5", "1.2.3.4", "v1.x.3.4", "vInfinity.0.0.0", ""])
def test_decode_viewport_rejects_anything_but_four_numbers(token):
    assert ShareAddressCodec.decode_viewport(token) is None


def test_path_form_page_index_is_returned_raw():
    decoded = ShareAddressCodec.decode("/board/abc.2.v10.20.300.400")
    assert decoded.page_index == 2
    assert decoded.page_id is None
    assert decoded.resolved_page_id == "page:2"
    assert decoded.viewport == Viewport(10, 20, 300, 400)


def test_path_form_page_index_without_viewport():
    decoded = ShareAddressCodec.decode("/board/abc.3")
    assert decoded.page_index == 3
    assert decoded.viewport is None


def test_path_form_encodes_page_index():
    assert ShareAddressCodec.encode_path("abc", page_index=4, viewport=Viewport(1, 2, 3, 4)) == "/board/abc.4.v1.2.3.4"
    assert ShareAddressCodec.encode_path("abc") == "/board/abc"


def test_full_urls_are_accepted():
    decoded = ShareAddressCodec.decode("https://boards.example.com/board/abc.1.v0.0.10.10?utm=x")
    assert decoded.room_id == "abc"
    assert decoded.page_index == 1

    decoded = ShareAddressCodec.decode("https://boards.example.com/r/abc?p=page%3A9")
    assert decoded.page_id == "page:9"


def test_publish_prefix_is_flagged():
    decoded = ShareAddressCodec.decode("/p/Xy12?p=page%3A1")
    assert decoded.room_id == "Xy12"
    assert decoded.is_publish


@pytest.mark.parametrize("address", ["", "/r/", "/board/", "/board/.1.v1.2.3.4", "/unknown/abc", "not a url"])
def test_missing_room_id_is_not_an_address(address):
    assert ShareAddressCodec.decode(address) is None


def test_encode_requires_room_id():
    with pytest.raises(ValueError):
        ShareAddressCodec.encode_query("")
    with pytest.raises(ValueError):
        ShareAddressCodec.encode_path("")


@pytest.mark.parametrize("room_id, kind, path", [
    ("gallery-impressionism-east-wing", RouteKind.GALLERY, "/galleries/impressionism/rooms/east-wing"),
    ("user-alice-sketchbook", RouteKind.USER, "/users/alice/rooms/sketchbook"),
    ("plaza-town-square", RouteKind.PLAZA, "/plaza/town-square"),
    ("workspace-q3", RouteKind.WORKSPACE, "/workspace/q3"),
    ("f3a9c2", RouteKind.DIRECT, "/r/f3a9c2"),
])
def test_room_route_from_id(room_id, kind, path):
    route = RoomRoute.from_room_id(room_id)
    assert route.kind == kind
    assert route.path == path
    assert route.room_id == room_id
    assert RoomRoute.from_path(path) == route


def test_room_route_rejects_unknown_paths():
    assert RoomRoute.from_path("/settings/profile") is None
