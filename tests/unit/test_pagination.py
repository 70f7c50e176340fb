"""Tests for cs_common.pagination."""

from src.cs_common.pagination import cursor_decode, cursor_encode


def test_decode_what_was_encoded() -> None:
    assert cursor_decode(cursor_encode(42)) == 42


def test_none_cursor() -> None:
    assert cursor_decode(None) is None


def test_garbage_cursor_is_ignored() -> None:
    assert cursor_decode("not-base64!!") is None


def test_wrong_payload_shape_is_ignored() -> None:
    import base64

    assert cursor_decode(base64.b64encode(b'{"other": 1}').decode()) is None
