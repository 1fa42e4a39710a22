"""
Command execution.

Applies a resolved command list to each target file in order through a
tag session, printing requested values, persisting mutations and falling
back to a full summary when nothing was printed explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

import click

from insignia.commands import (
    ClearField,
    Command,
    ImageFile,
    ImageSource,
    PrintField,
    SetImage,
    SetInt,
    SetText,
    StdinImage,
)
from insignia.config import TaggingConfig
from insignia.errors import FileAccessError, UnsupportedImageError
from insignia.fields import SUMMARY_ORDER, UNSIGNED_FIELDS, Field, FieldKind
from insignia.images import sniff_image
from insignia.tagging import CoverImage, TagSession, open_session

logger = logging.getLogger(__name__)

UNSUPPORTED_IMAGE_MESSAGE = "Unsupported image format (Supported: Png, Jpeg, Tiff, Bmp, Gif)"


def format_summary(session: TagSession) -> str:
    """
    Render every field of a session, one line each, in summary order.

    Missing numbers show as 0 and missing text as empty; the image is
    reported as present or absent, never dumped.
    """
    lines: list[str] = []
    for field in SUMMARY_ORDER:
        kind = field.kind
        if kind is FieldKind.INTEGER:
            value: object = session.get_number(field) or 0
        elif kind is FieldKind.TEXT:
            value = session.get_text(field) or ""
        else:
            value = "Present" if session.has_cover() else "No image"
        lines.append(f"{field.label}: {value}")
    return "\n".join(lines) + "\n"


class CommandExecutor:
    """
    Runs a command list against one or more audio files.

    Output goes to a binary stream so that raw cover bytes and text lines
    share one ordered channel.
    """

    def __init__(
        self,
        config: TaggingConfig | None = None,
        stdin: BinaryIO | None = None,
        stdout: BinaryIO | None = None,
    ):
        self.config = config or TaggingConfig()
        self.stdin = stdin
        self.stdout = stdout

    def execute(self, commands: Sequence[Command], files: Sequence[Path]) -> None:
        """
        Apply the commands to every file in order.

        The first failing file aborts the run; files already written stay
        written.

        Raises:
            InsigniaError: Subclass describing the failure
        """
        for file_path in files:
            self.execute_file(commands, file_path)

    def execute_file(self, commands: Sequence[Command], file_path: Path) -> None:
        """Apply the commands to a single file."""
        session = open_session(file_path, self.config)

        if not commands:
            self._write_line(format_summary(session))
            return

        mutated = False
        printed = False

        for command in commands:
            if isinstance(command, PrintField):
                self._print_field(session, command.field)
                printed = True
            elif isinstance(command, ClearField):
                session.remove(command.field)
                mutated = True
            elif isinstance(command, SetInt):
                self._set_int(session, command)
                mutated = True
            elif isinstance(command, SetText):
                session.set_text(command.field, command.value)
                mutated = True
            elif isinstance(command, SetImage):
                session.set_cover(self.load_cover(command.source))
                mutated = True
            else:
                raise TypeError(f"Unknown command: {command!r}")

        if mutated:
            session.save()
        else:
            logger.debug("No changes for %s; skipping write", file_path)

        if not printed:
            self._write_line(format_summary(session))

    def _set_int(self, session: TagSession, command: SetInt) -> None:
        value = command.value
        if command.field in UNSIGNED_FIELDS and value < 0:
            logger.debug("Clamping %s from %d to 0", command.field, value)
            value = 0
        session.set_number(command.field, value)

    def read_image(self, source: ImageSource) -> bytes:
        """
        Read the full image payload from a file or standard input.

        Standard input is consumed on each call; a later call sees whatever
        is left (normally nothing).

        Raises:
            FileAccessError: If the payload cannot be read
        """
        if isinstance(source, ImageFile):
            try:
                return source.path.read_bytes()
            except OSError as e:
                raise FileAccessError("Issue when reading image file.") from e

        if isinstance(source, StdinImage):
            try:
                return self._stdin().read()
            except OSError as e:
                raise FileAccessError("Issue when reading stdin.") from e

        raise TypeError(f"Unknown image source: {source!r}")

    def load_cover(self, source: ImageSource) -> CoverImage:
        """
        Read and validate a cover image.

        Raises:
            FileAccessError: If the payload cannot be read
            UnsupportedImageError: If the payload is not PNG, JPEG, TIFF, BMP or GIF
        """
        data = self.read_image(source)
        fmt = sniff_image(data)
        if fmt is None:
            raise UnsupportedImageError(UNSUPPORTED_IMAGE_MESSAGE)

        logger.debug("Loaded %d byte %s cover image", len(data), fmt)
        return CoverImage(
            data=data,
            mime_type=fmt.mime_type,
            description=self.config.cover_description,
        )

    def _print_field(self, session: TagSession, field: Field) -> None:
        kind = field.kind
        if kind is FieldKind.INTEGER:
            self._write_line(str(session.get_number(field) or 0))
        elif kind is FieldKind.TEXT:
            self._write_line(session.get_text(field) or "")
        else:
            cover = session.get_cover()
            if cover is not None:
                try:
                    self._stdout().write(cover.data)
                except OSError as e:
                    raise FileAccessError("Error when trying to print image to stdout") from e
            self._write_line("")

    def _write_line(self, text: str) -> None:
        stream = self._stdout()
        stream.write(text.encode("utf-8") + b"\n")
        stream.flush()

    def _stdout(self) -> BinaryIO:
        if self.stdout is None:
            return click.get_binary_stream("stdout")
        return self.stdout

    def _stdin(self) -> BinaryIO:
        if self.stdin is None:
            return click.get_binary_stream("stdin")
        return self.stdin
