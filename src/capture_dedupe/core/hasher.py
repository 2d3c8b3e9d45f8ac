"""Content fingerprints of decoded image pixels."""

import hashlib
import struct
from pathlib import Path
from typing import Callable

from capture_dedupe.core.codec import decode_image
from capture_dedupe.core.models import DecodedImage, Fingerprint
from capture_dedupe.utils.logger import setup_logger

logger = setup_logger(__name__)


class PixelHasher:
    """
    Hashes the pixel content of images.

    The digest covers the little-endian 32-bit width and height followed by
    the RGBA pixel bytes, so dimensions are part of the identity. Instances
    hold no mutable state and may be shared between threads.
    """

    def __init__(self, decoder: Callable[[Path], DecodedImage] = decode_image):
        """
        Initialize the pixel hasher.

        Args:
            decoder: Callable turning a path into a DecodedImage
        """
        self.decoder = decoder

    def hash_file(self, path: Path) -> Fingerprint:
        """
        Decode and hash an image file.

        Raises:
            DecodeError: If the image cannot be decoded
        """
        decoded = self.decoder(path)
        fingerprint = self.hash_pixels(decoded)
        logger.debug(f"Hashed {path}: {fingerprint.hash[:12]}")
        return fingerprint

    @staticmethod
    def hash_pixels(decoded: DecodedImage) -> Fingerprint:
        digest = hashlib.sha256()
        digest.update(struct.pack("<II", decoded.width, decoded.height))
        digest.update(decoded.pixels)
        return Fingerprint(
            hash=digest.hexdigest().upper(),
            width=decoded.width,
            height=decoded.height,
        )
