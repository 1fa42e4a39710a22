"""Pytest configuration and shared fixtures for insignia tests."""

from __future__ import annotations

import struct
from collections.abc import Callable
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

# MPEG-1 Layer III, 128 kbit/s, 44.1 kHz, no padding: 417 bytes per frame
MPEG_FRAME_HEADER = b"\xff\xfb\x90\x00"
MPEG_FRAME_LENGTH = 417


def create_minimal_mp3(path: Path, frames: int = 20) -> None:
    """Create a small MP3 with a run of silent MPEG frames and no tags."""
    frame = MPEG_FRAME_HEADER + b"\x00" * (MPEG_FRAME_LENGTH - len(MPEG_FRAME_HEADER))
    path.write_bytes(frame * frames)


def create_minimal_flac(path: Path) -> None:
    """Create a minimal valid FLAC file for testing."""
    # FLAC signature
    flac_sig = b"fLaC"

    # Minimal STREAMINFO metadata block (last block, type 0, length 34)
    block_header = bytes([0x80, 0x00, 0x00, 0x22])

    # STREAMINFO (34 bytes):
    # - min/max block size (4 bytes): 4096/4096
    # - min/max frame size (6 bytes): 0/0 (unknown)
    # - sample rate, channels, bits/sample, total samples (8 bytes)
    # - MD5 (16 bytes)
    streaminfo = (
        struct.pack(">HH", 4096, 4096)
        + b"\x00\x00\x00\x00\x00\x00"
        + struct.pack(">I", (44100 << 12) | (0 << 9) | (15 << 4) | 0)[1:]
        + struct.pack(">I", 0)
        + b"\x00"
        + b"\x00" * 16
    )

    path.write_bytes(flac_sig + block_header + streaminfo)


def make_image_bytes(fmt: str, size: tuple[int, int] = (4, 4)) -> bytes:
    """Encode a tiny solid image in the given Pillow format."""
    buffer = BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def mp3_file(tmp_path: Path) -> Path:
    """An untagged MP3 file."""
    path = tmp_path / "song.mp3"
    create_minimal_mp3(path)
    return path


@pytest.fixture
def flac_file(tmp_path: Path) -> Path:
    """An untagged FLAC file."""
    path = tmp_path / "song.flac"
    create_minimal_flac(path)
    return path


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def image_file(tmp_path: Path) -> Callable[[str], Path]:
    """Write an image in the given format to disk and return its path."""

    def _write(fmt: str) -> Path:
        path = tmp_path / f"cover.{fmt.lower()}"
        path.write_bytes(make_image_bytes(fmt))
        return path

    return _write


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    """A regular file that is neither audio nor an image."""
    path = tmp_path / "notes.txt"
    path.write_text("just some notes\n")
    return path
