from urllib.parse import unquote

import pytest

from mjpegstreamer.uri import get_string, get_true


@pytest.mark.parametrize("value", ["1", "10", "true", "TRUE", "Yes", "yes"])
def test_true_values(value):
    assert get_true({"extra_headers": value}, "extra_headers") is True


@pytest.mark.parametrize("value", ["0", "", "no", "false", "on", " 1"])
def test_false_values(value):
    assert get_true({"extra_headers": value}, "extra_headers") is False


def test_missing_key_is_false():
    assert get_true({"other": "1"}, "extra_headers") is False


def test_key_lookup_is_case_insensitive_and_first_wins():
    params = [("Key", "yes"), ("key", "0")]
    assert get_true(params, "KEY") is True
    assert get_string(params, "key") == "yes"


def test_get_string_missing():
    assert get_string({}, "key") is None


def test_get_string_plain_value_unchanged():
    assert get_string({"key": "abc-1.2_x~"}, "key") == "abc-1.2_x~"


def test_get_string_encodes_reserved():
    assert get_string({"key": "a b/c"}, "key") == "a%20b%2Fc"


@pytest.mark.parametrize("value", ["a&b=c", "тест", "100%", "?#[]"])
def test_get_string_round_trip(value):
    encoded = get_string({"key": value}, "key")
    assert unquote(encoded) == value
    assert all(ch.isalnum() or ch in "-._~%" for ch in encoded)