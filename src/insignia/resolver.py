"""
Command resolution.

Turns the raw option set from the command line into a validated,
conflict-free list of field commands plus the list of target files.
All validation happens here, before any file is opened for editing, so
a malformed invocation never partially mutates a file.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from insignia.commands import (
    ClearField,
    Command,
    ImageFile,
    PrintField,
    SetImage,
    SetInt,
    SetText,
    StdinImage,
)
from insignia.errors import (
    FieldConflictError,
    FileAccessError,
    HelpRequested,
    NoFilesError,
    NotANumberError,
    UnknownFieldError,
)
from insignia.fields import RESOLUTION_ORDER, Field, FieldKind, field_from_name

logger = logging.getLogger(__name__)

# Value of --image meaning "read the cover from standard input"
STDIN_MARKER = "-"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class FieldOptions:
    """
    Raw option set produced by the flag parser.

    ``values`` holds one entry per field option given on the command line:
    ``None`` when the option had no value (a print request), otherwise the
    value string. Fields that were not mentioned have no entry.
    """

    values: dict[Field, str | None] = field(default_factory=dict)
    clear: list[str] = field(default_factory=list)
    help: bool = False
    usage: str = ""


@dataclass
class Resolution:
    """Validated commands and target files for one invocation."""

    commands: list[Command]
    files: list[Path]


def _missing_file_message(path: str | Path) -> str:
    return (
        f"File {path} does not exist, is a broken symlink, "
        "or we may not have valid permissions"
    )


def validate_files(files: Sequence[str | Path]) -> list[Path]:
    """
    Check that every target exists as a regular file (symlinks followed).

    Raises:
        NoFilesError: If no files were given
        FileAccessError: If any entry is missing or not a regular file
    """
    if not files:
        raise NoFilesError("There were no files specified.")

    paths: list[Path] = []
    for entry in files:
        path = Path(entry)
        if not path.is_file():
            raise FileAccessError(_missing_file_message(entry))
        paths.append(path)
    return paths


def parse_int(field_: Field, raw: str) -> int:
    """
    Parse a base-10 signed 32-bit integer, ignoring surrounding whitespace.

    Raises:
        NotANumberError: If the value is not an integer or is out of range
    """
    text = raw.strip()
    if _INTEGER_RE.fullmatch(text):
        value = int(text)
        if INT32_MIN <= value <= INT32_MAX:
            return value

    raise NotANumberError(
        f"'track', 'year', and 'disc' need to be integers. (Error on '{field_}' field)"
    )


def _field_command(field_: Field, raw: str | None) -> Command:
    """Build the print or set command for a single field option."""
    if raw is None:
        return PrintField(field_)

    kind = field_.kind
    if kind is FieldKind.INTEGER:
        return SetInt(field_, parse_int(field_, raw))
    if kind is FieldKind.TEXT:
        return SetText(field_, raw)

    if raw == STDIN_MARKER:
        return SetImage(StdinImage())
    image_path = Path(raw)
    if not image_path.is_file():
        raise FileAccessError(_missing_file_message(raw))
    return SetImage(ImageFile(image_path))


def _clear_commands(commands: Sequence[Command], clear_names: Sequence[str]) -> list[ClearField]:
    """Reconcile --clear requests against the fields already printed or set."""
    used = {command.field for command in commands}

    clears: list[ClearField] = []
    for name in clear_names:
        field_ = field_from_name(name)
        if field_ is None:
            raise UnknownFieldError(f"Cannot clear '{name}' field because it does not exist!")
        if field_ in used:
            raise FieldConflictError(
                f"Cannot clear and set/print field '{name}' at the same time"
            )
        clears.append(ClearField(field_))
    return clears


def resolve(options: FieldOptions, files: Sequence[str | Path]) -> Resolution:
    """
    Resolve parsed options into an ordered command list.

    Print/set commands come first in fixed field order (track, year, disc,
    title, artist, album, albumartist, image), followed by clear commands
    in the order they were requested.

    Args:
        options: Raw option set from the flag parser
        files: Free (non-option) arguments naming the target files

    Returns:
        Resolution with the command list and validated file paths

    Raises:
        InsigniaError: Subclass describing the first problem found;
            HelpRequested when help was asked for
    """
    paths = validate_files(files)

    if options.help:
        raise HelpRequested(options.usage)

    commands: list[Command] = [
        _field_command(field_, options.values[field_])
        for field_ in RESOLUTION_ORDER
        if field_ in options.values
    ]
    commands.extend(_clear_commands(commands, options.clear))

    logger.debug("Resolved %d command(s) for %d file(s)", len(commands), len(paths))
    return Resolution(commands=commands, files=paths)
