"""
Typed field commands produced by the resolver and consumed by the executor.

Each set command exists once per field kind, so an integer value can only
ever be paired with an integer field, text with a text field and an image
source with the image field.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from insignia.fields import Field, FieldKind


@dataclass(frozen=True)
class ImageFile:
    """Cover image read from a file on disk."""

    path: Path


@dataclass(frozen=True)
class StdinImage:
    """Cover image read from standard input."""


ImageSource = ImageFile | StdinImage


@dataclass(frozen=True)
class PrintField:
    """Emit the current value of a field."""

    field: Field


@dataclass(frozen=True)
class ClearField:
    """Remove the stored value of a field."""

    field: Field


@dataclass(frozen=True)
class SetInt:
    """Assign an integer to track, year or disc."""

    field: Field
    value: int

    def __post_init__(self) -> None:
        if self.field.kind is not FieldKind.INTEGER:
            raise ValueError(f"'{self.field}' is not an integer field")


@dataclass(frozen=True)
class SetText:
    """Assign a string to title, artist, album or albumartist."""

    field: Field
    value: str

    def __post_init__(self) -> None:
        if self.field.kind is not FieldKind.TEXT:
            raise ValueError(f"'{self.field}' is not a text field")


@dataclass(frozen=True)
class SetImage:
    """Replace the embedded cover image."""

    source: ImageSource

    @property
    def field(self) -> Field:
        return Field.IMAGE


Command = PrintField | ClearField | SetInt | SetText | SetImage
