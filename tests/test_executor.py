"""Tests for command execution against real audio files."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
from mutagen.flac import FLAC

from insignia.commands import (
    ClearField,
    ImageFile,
    PrintField,
    SetImage,
    SetInt,
    SetText,
    StdinImage,
)
from insignia.config import TaggingConfig
from insignia.errors import (
    ExitCode,
    FileAccessError,
    TagOpenError,
    UnsupportedImageError,
)
from insignia.executor import CommandExecutor, format_summary
from insignia.fields import Field
from insignia.tagging import open_session

from conftest import create_minimal_mp3

EMPTY_SUMMARY = (
    b"Disc: 0\n"
    b"Track: 0\n"
    b"Title: \n"
    b"Artist: \n"
    b"Album: \n"
    b"Album Artist: \n"
    b"Image: No image\n"
    b"Year: 0\n"
    b"\n"
)


@pytest.fixture
def stdout() -> BytesIO:
    return BytesIO()


@pytest.fixture
def executor(stdout: BytesIO) -> CommandExecutor:
    return CommandExecutor(stdin=BytesIO(), stdout=stdout)


def test_no_commands_prints_summary(executor: CommandExecutor, stdout: BytesIO, mp3_file: Path):
    before = mp3_file.read_bytes()

    executor.execute([], [mp3_file])

    assert stdout.getvalue() == EMPTY_SUMMARY
    assert mp3_file.read_bytes() == before


def test_summary_lists_values_in_order(mp3_file: Path):
    session = open_session(mp3_file)
    session.set_number(Field.DISC, 1)
    session.set_number(Field.TRACK, 9)
    session.set_text(Field.TITLE, "Song")
    session.set_text(Field.ARTIST, "Band")
    session.set_number(Field.YEAR, 2020)

    assert format_summary(session).splitlines() == [
        "Disc: 1",
        "Track: 9",
        "Title: Song",
        "Artist: Band",
        "Album: ",
        "Album Artist: ",
        "Image: No image",
        "Year: 2020",
    ]


def test_set_then_print(executor: CommandExecutor, stdout: BytesIO, mp3_file: Path):
    executor.execute([SetText(Field.TITLE, "Foo")], [mp3_file])
    stdout.seek(0)
    stdout.truncate()

    executor.execute([PrintField(Field.TITLE)], [mp3_file])

    assert stdout.getvalue() == b"Foo\n"


def test_set_without_print_shows_summary(
    executor: CommandExecutor, stdout: BytesIO, mp3_file: Path
):
    executor.execute([SetText(Field.TITLE, "Foo"), SetInt(Field.TRACK, 3)], [mp3_file])

    output = stdout.getvalue().decode()
    assert "Track: 3\n" in output
    assert "Title: Foo\n" in output
    assert output.endswith("Year: 0\n\n")


def test_print_absent_values(executor: CommandExecutor, stdout: BytesIO, mp3_file: Path):
    executor.execute(
        [PrintField(Field.TRACK), PrintField(Field.ALBUM), PrintField(Field.IMAGE)],
        [mp3_file],
    )

    assert stdout.getvalue() == b"0\n\n\n"


def test_prints_follow_command_order(executor: CommandExecutor, stdout: BytesIO, mp3_file: Path):
    executor.execute(
        [
            SetInt(Field.YEAR, 1999),
            PrintField(Field.YEAR),
            SetText(Field.ARTIST, "Prince"),
            PrintField(Field.ARTIST),
        ],
        [mp3_file],
    )

    assert stdout.getvalue() == b"1999\nPrince\n"
    assert open_session(mp3_file).get_text(Field.ARTIST) == "Prince"


def test_negative_track_clamps_to_zero(executor: CommandExecutor, mp3_file: Path):
    executor.execute([SetInt(Field.TRACK, 5)], [mp3_file])
    executor.execute([SetInt(Field.TRACK, -5)], [mp3_file])

    assert open_session(mp3_file).get_number(Field.TRACK) == 0


def test_negative_year_kept_on_flac(executor: CommandExecutor, flac_file: Path):
    executor.execute([SetInt(Field.YEAR, -5)], [flac_file])

    assert open_session(flac_file).get_number(Field.YEAR) == -5


def test_negative_year_round_trip_on_id3(
    executor: CommandExecutor, stdout: BytesIO, mp3_file: Path
):
    executor.execute([SetInt(Field.YEAR, -5)], [mp3_file])

    assert open_session(mp3_file).get_number(Field.YEAR) == -5
    assert stdout.getvalue().endswith(b"Year: -5\n\n")


def test_id3_v23_summary_shows_new_year(stdout: BytesIO, mp3_file: Path):
    executor = CommandExecutor(config=TaggingConfig(id3_version=3), stdin=BytesIO(), stdout=stdout)

    executor.execute([SetInt(Field.YEAR, 1999)], [mp3_file])

    assert stdout.getvalue().endswith(b"Year: 1999\n\n")
    assert open_session(mp3_file).get_number(Field.YEAR) == 1999


def test_clear_absent_field_is_noop(executor: CommandExecutor, stdout: BytesIO, mp3_file: Path):
    executor.execute([ClearField(Field.ALBUM)], [mp3_file])

    assert stdout.getvalue() == EMPTY_SUMMARY


def test_clear_removes_value(executor: CommandExecutor, flac_file: Path):
    executor.execute([SetText(Field.ALBUM, "Mezzanine")], [flac_file])
    executor.execute([ClearField(Field.ALBUM)], [flac_file])

    assert "ALBUM" not in FLAC(flac_file)


def test_image_from_file(
    executor: CommandExecutor, stdout: BytesIO, mp3_file: Path, image_file
):
    cover_path = image_file("PNG")

    executor.execute([SetImage(ImageFile(cover_path))], [mp3_file])

    assert b"Image: Present\n" in stdout.getvalue()
    cover = open_session(mp3_file).get_cover()
    assert cover is not None
    assert cover.mime_type == "image/png"
    assert cover.data == cover_path.read_bytes()


@pytest.mark.parametrize(
    ("fmt", "mime_type"),
    [
        ("JPEG", "image/jpeg"),
        ("GIF", "image/gif"),
        ("BMP", "image/bmp"),
        ("TIFF", "image/tiff"),
    ],
)
def test_image_formats_accepted(
    executor: CommandExecutor, flac_file: Path, image_file, fmt: str, mime_type: str
):
    executor.execute([SetImage(ImageFile(image_file(fmt)))], [flac_file])

    cover = open_session(flac_file).get_cover()
    assert cover is not None
    assert cover.mime_type == mime_type


def test_image_from_stdin(stdout: BytesIO, mp3_file: Path, png_bytes: bytes):
    executor = CommandExecutor(stdin=BytesIO(png_bytes), stdout=stdout)

    executor.execute([SetImage(StdinImage())], [mp3_file])

    cover = open_session(mp3_file).get_cover()
    assert cover is not None
    assert cover.data == png_bytes


def test_stdin_is_consumed_by_first_file(
    tmp_path: Path, stdout: BytesIO, mp3_file: Path, png_bytes: bytes
):
    second = tmp_path / "second.mp3"
    create_minimal_mp3(second)
    executor = CommandExecutor(stdin=BytesIO(png_bytes), stdout=stdout)

    with pytest.raises(UnsupportedImageError):
        executor.execute([SetImage(StdinImage())], [mp3_file, second])

    assert open_session(mp3_file).has_cover()
    assert not open_session(second).has_cover()


def test_non_image_rejected_without_writing(
    executor: CommandExecutor, stdout: BytesIO, mp3_file: Path, text_file: Path
):
    before = mp3_file.read_bytes()

    with pytest.raises(UnsupportedImageError) as exc_info:
        executor.execute(
            [SetText(Field.TITLE, "Never"), SetImage(ImageFile(text_file))], [mp3_file]
        )

    assert exc_info.value.exit_code == ExitCode.FILE_ERROR
    assert exc_info.value.message == (
        "Unsupported image format (Supported: Png, Jpeg, Tiff, Bmp, Gif)"
    )
    assert mp3_file.read_bytes() == before
    assert stdout.getvalue() == b""


def test_unreadable_image_file(executor: CommandExecutor, tmp_path: Path, mp3_file: Path):
    with pytest.raises(FileAccessError, match="Issue when reading image file."):
        executor.execute([SetImage(ImageFile(tmp_path / "gone.png"))], [mp3_file])


def test_print_image_writes_raw_bytes(
    executor: CommandExecutor, stdout: BytesIO, mp3_file: Path, png_bytes: bytes
):
    executor.stdin = BytesIO(png_bytes)
    executor.execute([SetImage(StdinImage())], [mp3_file])
    stdout.seek(0)
    stdout.truncate()

    executor.execute([PrintField(Field.IMAGE)], [mp3_file])

    assert stdout.getvalue() == png_bytes + b"\n"


def test_clear_image(executor: CommandExecutor, mp3_file: Path, image_file):
    executor.execute([SetImage(ImageFile(image_file("GIF")))], [mp3_file])
    executor.execute([ClearField(Field.IMAGE)], [mp3_file])

    assert open_session(mp3_file).get_cover() is None


def test_cover_description_from_config(stdout: BytesIO, flac_file: Path, image_file):
    executor = CommandExecutor(
        config=TaggingConfig(cover_description="Cover (front)"), stdout=stdout
    )

    executor.execute([SetImage(ImageFile(image_file("PNG")))], [flac_file])

    assert FLAC(flac_file).pictures[0].desc == "Cover (front)"


def test_files_processed_in_order(tmp_path: Path, executor: CommandExecutor, stdout: BytesIO):
    first = tmp_path / "one.mp3"
    second = tmp_path / "two.mp3"
    create_minimal_mp3(first)
    create_minimal_mp3(second)

    executor.execute([SetText(Field.TITLE, "A")], [first])
    executor.execute([SetText(Field.TITLE, "B")], [second])
    stdout.seek(0)
    stdout.truncate()

    executor.execute([PrintField(Field.TITLE)], [first, second])

    assert stdout.getvalue() == b"A\nB\n"


def test_first_failure_aborts_remaining_files(
    tmp_path: Path, executor: CommandExecutor, text_file: Path
):
    first = tmp_path / "one.mp3"
    last = tmp_path / "three.mp3"
    create_minimal_mp3(first)
    create_minimal_mp3(last)

    with pytest.raises(TagOpenError):
        executor.execute([SetText(Field.TITLE, "X")], [first, text_file, last])

    assert open_session(first).get_text(Field.TITLE) == "X"
    assert open_session(last).get_text(Field.TITLE) is None


def test_unicode_text_round_trip(executor: CommandExecutor, stdout: BytesIO, flac_file: Path):
    executor.execute([SetText(Field.ARTIST, "Sigur Rós")], [flac_file])
    stdout.seek(0)
    stdout.truncate()

    executor.execute([PrintField(Field.ARTIST)], [flac_file])

    assert stdout.getvalue() == "Sigur Rós\n".encode()
