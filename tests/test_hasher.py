"""Tests for the pixel hasher and codec adapter."""

import hashlib
import struct
from concurrent.futures import ThreadPoolExecutor

import pytest

from capture_dedupe.core.codec import decode_image
from capture_dedupe.core.hasher import PixelHasher
from capture_dedupe.core.models import DecodedImage, Fingerprint
from capture_dedupe.exceptions import DecodeError

from conftest import BLUE, GREEN, RED


def test_identical_pixels_hash_equal(tmp_path, make_png):
    """Files with the same pixels hash the same regardless of name."""
    pattern = [RED, GREEN, BLUE, (255, 255, 255, 255)]
    first = make_png(tmp_path / "a.png", pattern)
    second = make_png(tmp_path / "completely-different-name.png", pattern)
    other = make_png(tmp_path / "c.png", (0, 0, 0, 255))

    hasher = PixelHasher()

    assert hasher.hash_file(first) == hasher.hash_file(second)
    assert hasher.hash_file(first).hash == hasher.hash_file(second).hash
    assert hasher.hash_file(first) != hasher.hash_file(other)


def test_hash_is_stable_across_calls(tmp_path, make_png):
    path = make_png(tmp_path / "a.png", RED)
    hasher = PixelHasher()

    hashes = {hasher.hash_file(path).hash for _ in range(5)}

    assert len(hashes) == 1


def test_hash_layout_covers_dimensions_and_pixels():
    """Digest is SHA-256 over LE width, LE height and the RGBA bytes."""
    pixels = bytes([1, 2, 3, 4] * 6)
    decoded = DecodedImage(width=3, height=2, pixels=pixels)

    fingerprint = PixelHasher.hash_pixels(decoded)

    expected = hashlib.sha256(struct.pack("<II", 3, 2) + pixels).hexdigest().upper()
    assert fingerprint.hash == expected
    assert fingerprint.width == 3
    assert fingerprint.height == 2


def test_dimensions_are_part_of_identity():
    pixels = bytes(range(24))

    wide = PixelHasher.hash_pixels(DecodedImage(width=3, height=2, pixels=pixels))
    tall = PixelHasher.hash_pixels(DecodedImage(width=2, height=3, pixels=pixels))

    assert wide != tall


def test_fingerprint_equality_ignores_case_and_dimensions():
    upper = Fingerprint(hash="ABCDEF", width=1, height=1)
    lower = Fingerprint(hash="abcdef", width=9, height=9)

    assert upper == lower
    assert hash(upper) == hash(lower)


def test_concurrent_hashing_is_consistent(tmp_path, make_png):
    path = make_png(tmp_path / "a.png", BLUE, size=(16, 16))
    hasher = PixelHasher()

    with ThreadPoolExecutor(max_workers=8) as pool:
        hashes = set(pool.map(lambda _: hasher.hash_file(path).hash, range(32)))

    assert len(hashes) == 1


def test_custom_decoder_is_used():
    calls = []

    def fake_decoder(path):
        calls.append(path)
        return DecodedImage(width=1, height=1, pixels=b"\x00\x00\x00\xff")

    hasher = PixelHasher(decoder=fake_decoder)
    fingerprint = hasher.hash_file("anything.png")

    assert calls == ["anything.png"]
    assert fingerprint.width == 1


def test_decode_converts_to_rgba(tmp_path):
    from PIL import Image

    path = tmp_path / "rgb.png"
    Image.new("RGB", (3, 1), color=(10, 20, 30)).save(path, "PNG")

    decoded = decode_image(path)

    assert (decoded.width, decoded.height) == (3, 1)
    assert decoded.pixels == bytes([10, 20, 30, 255] * 3)


def test_decode_invalid_file_raises_decode_error(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"this is not a png")

    with pytest.raises(DecodeError) as excinfo:
        decode_image(path)

    assert excinfo.value.path == path


def test_decode_missing_file_raises_decode_error(tmp_path):
    with pytest.raises(DecodeError):
        decode_image(tmp_path / "missing.png")
