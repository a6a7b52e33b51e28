import base64

import pytest

from image_to_text import DEFAULT_MIME_TYPE, decode_image_payload, sniff_mime_type

RAW = b"\xff\xd8\xff\xe0 jpeg body"
ENCODED = base64.b64encode(RAW).decode("ascii")


def test_plain_base64():
    assert decode_image_payload(ENCODED) == RAW


def test_data_uri_prefix_is_stripped():
    assert decode_image_payload("data:image/jpeg;base64," + ENCODED) == RAW


def test_missing_padding_is_repaired():
    assert decode_image_payload(ENCODED.rstrip("=")) == RAW


def test_whitespace_is_ignored():
    wrapped = "\n".join(ENCODED[i:i + 8] for i in range(0, len(ENCODED), 8))
    assert decode_image_payload(wrapped) == RAW


@pytest.mark.parametrize("payload", ["", "!!!not-base64!!!", "data:image/png;base64,"])
def test_invalid_payload(payload):
    with pytest.raises(ValueError):
        decode_image_payload(payload)


def test_mime_type_from_data_uri():
    assert sniff_mime_type("data:image/WEBP;base64," + ENCODED) == "image/webp"


def test_declared_mime_type_wins():
    assert sniff_mime_type("data:image/webp;base64," + ENCODED, "image/png") == "image/png"


def test_mime_type_defaults_to_jpeg():
    assert sniff_mime_type(ENCODED) == DEFAULT_MIME_TYPE == "image/jpeg"
