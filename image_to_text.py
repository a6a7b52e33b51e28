import base64
import binascii
import re
from typing import Optional

DEFAULT_MIME_TYPE = "image/jpeg"

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w=-]+)*;base64,", re.IGNORECASE)


def sniff_mime_type(base64_image: str, declared: Optional[str] = None) -> str:
    if declared:
        return declared
    match = _DATA_URI.match(base64_image or "")
    if match and match.group("mime"):
        return match.group("mime").lower()
    return DEFAULT_MIME_TYPE


def decode_image_payload(base64_image: str) -> bytes:
    if not base64_image:
        raise ValueError("image payload is empty")

    # Strip data URL prefix if present
    if "," in base64_image:
        base64_image = base64_image.split(",", 1)[1]
    base64_image = "".join(base64_image.split())

    # Fix base64 padding
    missing_padding = len(base64_image) % 4
    if missing_padding:
        base64_image += "=" * (4 - missing_padding)

    try:
        image_bytes = base64.b64decode(base64_image, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"image payload is not valid base64: {e}") from e

    if not image_bytes:
        raise ValueError("image payload is empty")
    return image_bytes
