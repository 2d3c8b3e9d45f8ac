"""Image codec adapter: decode an image file into raw RGBA pixels."""

from pathlib import Path

from PIL import Image, UnidentifiedImageError

from capture_dedupe.core.models import DecodedImage
from capture_dedupe.exceptions import DecodeError


def decode_image(path: Path) -> DecodedImage:
    """
    Decode an image file into width, height and RGBA row-major pixel bytes.

    Args:
        path: Image file to decode

    Returns:
        Decoded pixel data

    Raises:
        DecodeError: If the file cannot be read or is not a supported image
    """
    try:
        with Image.open(path) as img:
            rgba = img.convert("RGBA")
            width, height = rgba.size
            return DecodedImage(width=width, height=height, pixels=rgba.tobytes())
    except (
        OSError,
        UnidentifiedImageError,
        Image.DecompressionBombError,
        SyntaxError,
        ValueError,
    ) as e:
        raise DecodeError(path, e) from e
