"""
Tag store sessions for audio files.

A session binds one audio file's tag container (ID3v2, Vorbis comments or
MP4 atoms) and exposes field-level getters, setters and removers plus the
embedded cover image. Changes stay in memory until ``save()``.

Uses mutagen for low-level tag manipulation; the container is recognised
from the file's contents, not its extension.
"""

from __future__ import annotations

import base64
import copy
import logging
import re
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import mutagen
from mutagen import MutagenError
from mutagen.aiff import AIFF
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, TALB, TDRC, TIT2, TPE1, TPE2, TPOS, TRCK, TXXX, PictureType
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4, AtomDataType, MP4Cover
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from insignia.config import TaggingConfig
from insignia.errors import TagOpenError, TagValueError, TagWriteError, UnsupportedImageError
from insignia.fields import Field
from insignia.images import ImageFormat

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


@dataclass
class CoverImage:
    """Embedded cover image: raw bytes plus media type label."""

    data: bytes
    mime_type: str
    description: str = ""


def _leading_int(text: str | None) -> int | None:
    """Parse the leading signed integer of a value such as '1985-03-01'."""
    if not text:
        return None
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else None


def _split_number(text: str | None) -> tuple[int | None, str | None]:
    """Split 'n/total' into the number and the raw total text."""
    if not text:
        return None, None
    number, sep, total = text.partition("/")
    return _leading_int(number), (total.strip() or None) if sep else None


def _join_number(value: int, total: str | None) -> str:
    return f"{value}/{total}" if total else str(value)


class TagSession(ABC):
    """
    Abstract base class for format-specific tag sessions.

    Subclasses map fields onto their container's keys.
    """

    container = "unknown"

    def __init__(self, file_path: Path, audio: Any, config: TaggingConfig | None = None):
        self.file_path = file_path
        self.audio = audio
        self.config = config or TaggingConfig()
        if self.audio.tags is None:
            self.audio.add_tags()

    @property
    def tags(self) -> Any:
        return self.audio.tags

    @abstractmethod
    def get_text(self, field: Field) -> str | None:
        """Read a string field; None if absent."""

    @abstractmethod
    def set_text(self, field: Field, value: str) -> None:
        """Store a string field."""

    @abstractmethod
    def get_number(self, field: Field) -> int | None:
        """Read an integer field; None if absent."""

    @abstractmethod
    def set_number(self, field: Field, value: int) -> None:
        """Store an integer field."""

    @abstractmethod
    def remove(self, field: Field) -> None:
        """Remove a field's value. Removing an absent value is a no-op."""

    @abstractmethod
    def get_cover(self) -> CoverImage | None:
        """Read the embedded cover image, if any."""

    @abstractmethod
    def set_cover(self, cover: CoverImage) -> None:
        """Embed a cover image, replacing any existing one."""

    def has_cover(self) -> bool:
        return self.get_cover() is not None

    def save(self) -> None:
        """
        Write the session back to the audio file.

        Raises:
            TagWriteError: If the container cannot be written
        """
        try:
            self._save()
        except (MutagenError, OSError) as e:
            raise TagWriteError(f"Failed to write new tags to {self.file_path}") from e
        logger.info("Wrote %s tags to %s", self.container, self.file_path)

    def _save(self) -> None:
        # Loaded from an unnamed stream, so the target is always given
        self.audio.save(self.file_path)


class ID3TagSession(TagSession):
    """Session for ID3v2 tags (MP3, AIFF, WAVE)."""

    container = "ID3v2"

    TEXT_FRAMES = {
        Field.TITLE: TIT2,
        Field.ARTIST: TPE1,
        Field.ALBUM: TALB,
        Field.ALBUM_ARTIST: TPE2,
    }

    NUMBER_FRAMES = {
        Field.TRACK: TRCK,
        Field.DISC: TPOS,
        Field.YEAR: TDRC,
    }

    # ID3v2 timestamps have no sign, so negative years go to a user text frame
    SIGNED_YEAR_DESC = "YEAR"
    SIGNED_YEAR_KEY = f"TXXX:{SIGNED_YEAR_DESC}"

    def _frame_text(self, frame_id: str) -> str | None:
        frame = self.tags.get(frame_id)
        if frame is None or not frame.text:
            return None
        return "/".join(str(text) for text in frame.text)

    def get_text(self, field: Field) -> str | None:
        return self._frame_text(self.TEXT_FRAMES[field].__name__)

    def set_text(self, field: Field, value: str) -> None:
        frame_cls = self.TEXT_FRAMES[field]
        self.tags.delall(frame_cls.__name__)
        self.tags.add(frame_cls(encoding=3, text=[value]))

    def get_number(self, field: Field) -> int | None:
        frame_id = self.NUMBER_FRAMES[field].__name__
        if field is Field.YEAR:
            # TDRC text is an ID3 timestamp, e.g. "1985-03-01"
            year = _leading_int(self._frame_text(frame_id))
            if year is None:
                year = _leading_int(self._frame_text(self.SIGNED_YEAR_KEY))
            return year
        number, _ = _split_number(self._frame_text(frame_id))
        return number

    def set_number(self, field: Field, value: int) -> None:
        frame_cls = self.NUMBER_FRAMES[field]
        frame_id = frame_cls.__name__

        if field is Field.YEAR:
            self.remove(Field.YEAR)
            if value < 0:
                self.tags.add(TXXX(encoding=3, desc=self.SIGNED_YEAR_DESC, text=[str(value)]))
            else:
                self.tags.add(TDRC(encoding=3, text=[str(value)]))
            return

        # Keep an existing "/total" suffix
        _, total = _split_number(self._frame_text(frame_id))
        self.tags.delall(frame_id)
        self.tags.add(frame_cls(encoding=3, text=[_join_number(value, total)]))

    def remove(self, field: Field) -> None:
        if field is Field.IMAGE:
            self.tags.delall("APIC")
        elif field in self.TEXT_FRAMES:
            self.tags.delall(self.TEXT_FRAMES[field].__name__)
        else:
            self.tags.delall(self.NUMBER_FRAMES[field].__name__)
            if field is Field.YEAR:
                self.tags.delall(self.SIGNED_YEAR_KEY)

    def get_cover(self) -> CoverImage | None:
        pictures = self.tags.getall("APIC")
        if not pictures:
            return None
        front = [p for p in pictures if p.type == PictureType.COVER_FRONT]
        picture = (front or pictures)[0]
        return CoverImage(data=picture.data, mime_type=picture.mime, description=picture.desc)

    def set_cover(self, cover: CoverImage) -> None:
        self.tags.delall("APIC")
        self.tags.add(
            APIC(
                encoding=3,
                mime=cover.mime_type,
                type=PictureType.COVER_FRONT,
                desc=cover.description,
                data=cover.data,
            )
        )

    def _save(self) -> None:
        version = self.config.id3_version
        if version == 4:
            self.audio.save(self.file_path, v2_version=4)
            return
        # Convert a copy so the session keeps its v2.4 frames for later reads
        tags = copy.deepcopy(self.tags)
        tags.update_to_v23()
        tags.save(self.file_path, v2_version=version)


class VorbisTagSession(TagSession):
    """
    Session for Vorbis comments (FLAC, Ogg).

    Subclasses decide where the cover image lives.
    """

    container = "Vorbis comment"

    FIELD_MAPPINGS = {
        Field.TITLE: "TITLE",
        Field.ARTIST: "ARTIST",
        Field.ALBUM: "ALBUM",
        Field.ALBUM_ARTIST: "ALBUMARTIST",
        Field.TRACK: "TRACKNUMBER",
        Field.DISC: "DISCNUMBER",
        Field.YEAR: "DATE",
    }

    def _first(self, key: str) -> str | None:
        values = self.tags.get(key)
        return values[0] if values else None

    def get_text(self, field: Field) -> str | None:
        return self._first(self.FIELD_MAPPINGS[field])

    def set_text(self, field: Field, value: str) -> None:
        self.tags[self.FIELD_MAPPINGS[field]] = [value]

    def get_number(self, field: Field) -> int | None:
        raw = self._first(self.FIELD_MAPPINGS[field])
        if field is Field.YEAR:
            return _leading_int(raw)
        number, _ = _split_number(raw)
        return number

    def set_number(self, field: Field, value: int) -> None:
        key = self.FIELD_MAPPINGS[field]
        if field is Field.YEAR:
            self.tags[key] = [str(value)]
            return
        _, total = _split_number(self._first(key))
        self.tags[key] = [_join_number(value, total)]

    def remove(self, field: Field) -> None:
        if field is Field.IMAGE:
            self._remove_cover()
            return
        key = self.FIELD_MAPPINGS[field]
        if key in self.tags:
            del self.tags[key]

    @abstractmethod
    def _remove_cover(self) -> None:
        pass


def _flac_picture(cover: CoverImage) -> Picture:
    picture = Picture()
    picture.type = PictureType.COVER_FRONT
    picture.mime = cover.mime_type
    picture.desc = cover.description
    picture.data = cover.data
    return picture


def _pick_picture(pictures: list[Picture]) -> CoverImage | None:
    if not pictures:
        return None
    front = [p for p in pictures if p.type == PictureType.COVER_FRONT]
    picture = (front or pictures)[0]
    return CoverImage(data=picture.data, mime_type=picture.mime, description=picture.desc)


class FLACTagSession(VorbisTagSession):
    """FLAC: cover images live in PICTURE metadata blocks."""

    container = "FLAC"

    def get_cover(self) -> CoverImage | None:
        return _pick_picture(list(self.audio.pictures))

    def set_cover(self, cover: CoverImage) -> None:
        self.audio.clear_pictures()
        self.audio.add_picture(_flac_picture(cover))

    def _remove_cover(self) -> None:
        self.audio.clear_pictures()


class OggTagSession(VorbisTagSession):
    """Ogg Vorbis/Opus: cover images are base64 METADATA_BLOCK_PICTURE comments."""

    container = "Ogg"

    PICTURE_KEY = "METADATA_BLOCK_PICTURE"

    def get_cover(self) -> CoverImage | None:
        pictures: list[Picture] = []
        for encoded in self.tags.get(self.PICTURE_KEY, []):
            try:
                pictures.append(Picture(base64.b64decode(encoded)))
            except (ValueError, struct.error, MutagenError) as e:
                logger.warning("Skipping unreadable embedded picture in %s: %s", self.file_path, e)
        return _pick_picture(pictures)

    def set_cover(self, cover: CoverImage) -> None:
        encoded = base64.b64encode(_flac_picture(cover).write()).decode("ascii")
        self.tags[self.PICTURE_KEY] = [encoded]

    def _remove_cover(self) -> None:
        if self.PICTURE_KEY in self.tags:
            del self.tags[self.PICTURE_KEY]


class MP4TagSession(TagSession):
    """Session for MP4/M4A atoms."""

    container = "MP4"

    TEXT_ATOMS = {
        Field.TITLE: "\xa9nam",
        Field.ARTIST: "\xa9ART",
        Field.ALBUM: "\xa9alb",
        Field.ALBUM_ARTIST: "aART",
    }

    YEAR_ATOM = "\xa9day"

    # Special: list of (number, total) tuples of unsigned 16-bit values
    PAIR_ATOMS = {
        Field.TRACK: "trkn",
        Field.DISC: "disk",
    }
    PAIR_MAX = 0xFFFF

    COVER_ATOM = "covr"

    COVER_FORMATS = {
        ImageFormat.JPEG: AtomDataType.JPEG,
        ImageFormat.PNG: AtomDataType.PNG,
        ImageFormat.GIF: AtomDataType.GIF,
        ImageFormat.BMP: AtomDataType.BMP,
    }

    def get_text(self, field: Field) -> str | None:
        values = self.tags.get(self.TEXT_ATOMS[field])
        return str(values[0]) if values else None

    def set_text(self, field: Field, value: str) -> None:
        self.tags[self.TEXT_ATOMS[field]] = [value]

    def get_number(self, field: Field) -> int | None:
        if field is Field.YEAR:
            values = self.tags.get(self.YEAR_ATOM)
            return _leading_int(str(values[0])) if values else None
        values = self.tags.get(self.PAIR_ATOMS[field])
        return int(values[0][0]) if values else None

    def set_number(self, field: Field, value: int) -> None:
        if field is Field.YEAR:
            self.tags[self.YEAR_ATOM] = [str(value)]
            return
        if not 0 <= value <= self.PAIR_MAX:
            raise TagValueError(
                f"MP4 {field} numbers must be between 0 and {self.PAIR_MAX} ({self.file_path})"
            )
        atom = self.PAIR_ATOMS[field]
        existing = self.tags.get(atom)
        total = existing[0][1] if existing and len(existing[0]) > 1 else 0
        self.tags[atom] = [(value, total)]

    def remove(self, field: Field) -> None:
        if field is Field.IMAGE:
            atom = self.COVER_ATOM
        elif field is Field.YEAR:
            atom = self.YEAR_ATOM
        elif field in self.PAIR_ATOMS:
            atom = self.PAIR_ATOMS[field]
        else:
            atom = self.TEXT_ATOMS[field]
        if atom in self.tags:
            del self.tags[atom]

    def get_cover(self) -> CoverImage | None:
        covers = self.tags.get(self.COVER_ATOM)
        if not covers:
            return None
        cover = covers[0]
        fmt = next(
            (f for f, atom_type in self.COVER_FORMATS.items() if atom_type == cover.imageformat),
            ImageFormat.JPEG,
        )
        return CoverImage(data=bytes(cover), mime_type=fmt.mime_type)

    def set_cover(self, cover: CoverImage) -> None:
        fmt = ImageFormat.from_mime_type(cover.mime_type)
        atom_type = self.COVER_FORMATS.get(fmt) if fmt else None
        if atom_type is None:
            raise UnsupportedImageError(
                f"MP4 cover art cannot hold {cover.mime_type} images ({self.file_path})"
            )
        self.tags[self.COVER_ATOM] = [MP4Cover(cover.data, imageformat=atom_type)]


class _UnnamedReader:
    """
    Read-only view of an open file that hides its name.

    mutagen scores candidate formats on the file name as well as the
    header; without a name only the contents decide.
    """

    def __init__(self, fileobj: Any):
        self._fileobj = fileobj

    def read(self, size: int = -1) -> bytes:
        return self._fileobj.read(size)

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._fileobj.seek(offset, whence)

    def tell(self) -> int:
        return self._fileobj.tell()


def get_session_class(audio: Any) -> type[TagSession] | None:
    """Pick the session type for a loaded mutagen file object."""
    if isinstance(audio, FLAC):
        return FLACTagSession
    if isinstance(audio, (OggVorbis, OggOpus)):
        return OggTagSession
    if isinstance(audio, MP4):
        return MP4TagSession
    if isinstance(audio, (MP3, AIFF, WAVE)):
        return ID3TagSession
    return None


def open_session(file_path: Path, config: TaggingConfig | None = None) -> TagSession:
    """
    Open a tag session for an audio file, detecting the container by signature.

    Args:
        file_path: Path to audio file
        config: Tag write settings

    Returns:
        TagSession bound to the file

    Raises:
        TagOpenError: If the file is not a recognised, readable audio container
    """
    try:
        with open(file_path, "rb") as fileobj:
            audio = mutagen.File(_UnnamedReader(fileobj))
        session_cls = get_session_class(audio) if audio is not None else None
        if session_cls is None:
            raise TagOpenError(f"Failure to open `{file_path}` for editing")
        session = session_cls(file_path, audio, config)
    except (MutagenError, OSError) as e:
        raise TagOpenError(f"Failure to open `{file_path}` for editing") from e

    logger.debug("Opened %s session for %s", session.container, file_path)
    return session
