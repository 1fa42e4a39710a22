__all__ = (
    "main",
    "Config",
    "TaggingConfig",
    # Fields and commands
    "Field",
    "FieldKind",
    "Command",
    "PrintField",
    "ClearField",
    "SetInt",
    "SetText",
    "SetImage",
    "ImageFile",
    "StdinImage",
    # Resolution and execution
    "FieldOptions",
    "Resolution",
    "resolve",
    "CommandExecutor",
    "format_summary",
    # Tag store
    "CoverImage",
    "TagSession",
    "ID3TagSession",
    "FLACTagSession",
    "OggTagSession",
    "MP4TagSession",
    "open_session",
    # Images
    "ImageFormat",
    "sniff_image",
    # Errors
    "ExitCode",
    "InsigniaError",
)

from insignia.cli import main
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
from insignia.config import Config, TaggingConfig
from insignia.errors import ExitCode, InsigniaError
from insignia.executor import CommandExecutor, format_summary
from insignia.fields import Field, FieldKind
from insignia.images import ImageFormat, sniff_image
from insignia.resolver import FieldOptions, Resolution, resolve
from insignia.tagging import (
    CoverImage,
    FLACTagSession,
    ID3TagSession,
    MP4TagSession,
    OggTagSession,
    TagSession,
    open_session,
)
