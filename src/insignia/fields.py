"""Editable tag fields and their value kinds."""

from __future__ import annotations

from enum import StrEnum


class FieldKind(StrEnum):
    """Kind of value a field holds."""

    INTEGER = "integer"
    TEXT = "text"
    IMAGE = "image"


class Field(StrEnum):
    """Editable tag fields, valued by their canonical CLI name."""

    TRACK = "track"
    YEAR = "year"
    DISC = "disc"

    TITLE = "title"
    ARTIST = "artist"
    ALBUM = "album"
    ALBUM_ARTIST = "albumartist"

    IMAGE = "image"

    @property
    def kind(self) -> FieldKind:
        return _FIELD_KINDS[self]

    @property
    def label(self) -> str:
        """Human-readable label used in the summary."""
        return _FIELD_LABELS[self]


_FIELD_KINDS = {
    Field.TRACK: FieldKind.INTEGER,
    Field.YEAR: FieldKind.INTEGER,
    Field.DISC: FieldKind.INTEGER,
    Field.TITLE: FieldKind.TEXT,
    Field.ARTIST: FieldKind.TEXT,
    Field.ALBUM: FieldKind.TEXT,
    Field.ALBUM_ARTIST: FieldKind.TEXT,
    Field.IMAGE: FieldKind.IMAGE,
}

_FIELD_LABELS = {
    Field.TRACK: "Track",
    Field.YEAR: "Year",
    Field.DISC: "Disc",
    Field.TITLE: "Title",
    Field.ARTIST: "Artist",
    Field.ALBUM: "Album",
    Field.ALBUM_ARTIST: "Album Artist",
    Field.IMAGE: "Image",
}

# Order in which per-field options are turned into commands
RESOLUTION_ORDER: tuple[Field, ...] = tuple(Field)

# Order of lines in the full summary
SUMMARY_ORDER: tuple[Field, ...] = (
    Field.DISC,
    Field.TRACK,
    Field.TITLE,
    Field.ARTIST,
    Field.ALBUM,
    Field.ALBUM_ARTIST,
    Field.IMAGE,
    Field.YEAR,
)

# Integer fields stored as unsigned counts
UNSIGNED_FIELDS = frozenset({Field.TRACK, Field.DISC})


def field_from_name(name: str) -> Field | None:
    """Look up a field by its canonical name; None if unknown."""
    try:
        return Field(name)
    except ValueError:
        return None


## Tests


def test_field_from_name():
    assert field_from_name("albumartist") is Field.ALBUM_ARTIST
    assert field_from_name("image") is Field.IMAGE
    assert field_from_name("Title") is None
    assert field_from_name("comment") is None


def test_field_kinds():
    assert Field.YEAR.kind is FieldKind.INTEGER
    assert Field.ALBUM.kind is FieldKind.TEXT
    assert Field.IMAGE.kind is FieldKind.IMAGE
    assert set(SUMMARY_ORDER) == set(Field)
