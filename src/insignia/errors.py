"""Error types and exit codes for insignia.

Every user-visible failure is an ``InsigniaError`` carrying the message
printed on stderr and the process exit code. The CLI entry point is the
only place these are translated into output.
"""

from __future__ import annotations


class ExitCode:
    """Process exit codes."""

    SUCCESS = 0
    ARGUMENT_ERROR = 1
    FILE_ERROR = 2
    NOT_A_NUMBER = 3
    UNKNOWN_FIELD = 4
    FIELD_CONFLICT = 5
    NO_FILES = 6
    TAG_OPEN_ERROR = 7


class InsigniaError(Exception):
    """Base error with an associated exit code."""

    exit_code: int = ExitCode.ARGUMENT_ERROR

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class HelpRequested(InsigniaError):
    """
    Early successful exit carrying the usage text.

    Not a failure: the CLI prints the message on stdout and exits 0.
    """

    exit_code = ExitCode.SUCCESS


class ArgumentError(InsigniaError):
    """Malformed invocation or configuration."""

    exit_code = ExitCode.ARGUMENT_ERROR


class FileAccessError(InsigniaError):
    """A file could not be found, read or written."""

    exit_code = ExitCode.FILE_ERROR


class UnsupportedImageError(FileAccessError):
    """Cover image payload is not PNG, JPEG, TIFF, BMP or GIF."""


class TagWriteError(FileAccessError):
    """Tags could not be written back to the audio file."""


class TagValueError(FileAccessError):
    """A value cannot be represented in the file's tag container."""


class NotANumberError(InsigniaError):
    exit_code = ExitCode.NOT_A_NUMBER


class UnknownFieldError(InsigniaError):
    exit_code = ExitCode.UNKNOWN_FIELD


class FieldConflictError(InsigniaError):
    exit_code = ExitCode.FIELD_CONFLICT


class NoFilesError(InsigniaError):
    exit_code = ExitCode.NO_FILES


class TagOpenError(InsigniaError):
    """The audio file's tag container could not be opened for editing."""

    exit_code = ExitCode.TAG_OPEN_ERROR
