from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import click

from insignia.commands import SetImage, StdinImage
from insignia.config import Config
from insignia.console import print_error, print_warning
from insignia.errors import ArgumentError, ExitCode, HelpRequested, InsigniaError
from insignia.executor import CommandExecutor
from insignia.fields import Field, FieldKind
from insignia.resolver import FieldOptions, Resolution, resolve
from insignia.safe_logging import configure_safe_logging

logger = logging.getLogger(__name__)

# Value given to a field option that appeared without a value.
# NUL cannot occur in a real command-line argument.
PRINT_FLAG = "\x00print"

FIELD_OPTIONS: tuple[tuple[Field, str, str], ...] = (
    (Field.TRACK, "NUM", "The track number"),
    (Field.YEAR, "NUM", "The year the track released"),
    (Field.DISC, "NUM", "The disc this track is on"),
    (Field.TITLE, "STRING", "The song name"),
    (Field.ARTIST, "STRING", "The song's artist"),
    (Field.ALBUM, "STRING", "The song's album"),
    (Field.ALBUM_ARTIST, "STRING", "The album artist"),
    (
        Field.IMAGE,
        "FILE",
        "The album artwork that goes along with the song. "
        "`-` for stdin, `./-` for a file literally named `-`.",
    ),
)


# Accepted for compatibility with older invocations; the value is ignored
COMMENT_OPTION = "--comment"

# Options whose value is always the following argument
VALUE_OPTIONS = frozenset({"--clear", "--config"})

_INTEGER_VALUE_RE = re.compile(r"\s*[+-]?[0-9]+\s*")


def _takes_next_argument(field: Field | None, candidate: str) -> bool:
    """Decide whether the argument after a bare optional-value option is its value."""
    if field is not None and field.kind is FieldKind.INTEGER:
        if _INTEGER_VALUE_RE.fullmatch(candidate):
            return True
    return candidate == "-" or not candidate.startswith("-")


def expand_optional_values(args: list[str]) -> list[str]:
    """
    Rewrite field options into explicit ``--name=value`` form.

    A field option takes the next argument as its value unless that
    argument looks like another option; integer fields also take signed
    numbers such as ``-5``. Without a value the option becomes a print
    request. Arguments after ``--`` are left alone.

    Args:
        args: Raw command-line arguments

    Returns:
        Arguments in which every field option carries an explicit value
    """
    optional = {f"--{field.value}": field for field, _, _ in FIELD_OPTIONS}
    optional[COMMENT_OPTION] = None

    expanded: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        i += 1
        if arg == "--":
            expanded.append(arg)
            expanded.extend(args[i:])
            break
        if arg in VALUE_OPTIONS and i < len(args):
            expanded.extend((arg, args[i]))
            i += 1
        elif arg in optional:
            if i < len(args) and _takes_next_argument(optional[arg], args[i]):
                expanded.append(f"{arg}={args[i]}")
                i += 1
            else:
                expanded.append(f"{arg}={PRINT_FLAG}")
        else:
            expanded.append(arg)
    return expanded


class InsigniaCommand(click.Command):
    """Click command whose usage errors exit with the argument-error code."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, expand_optional_values(args))
        except click.UsageError as e:
            e.exit_code = ExitCode.ARGUMENT_ERROR
            raise


def field_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach one option per field: bare to print, with a value to set."""
    for field, metavar, help_text in reversed(FIELD_OPTIONS):
        func = click.option(
            f"--{field.value}",
            field.value,
            multiple=True,
            metavar=f"[{metavar}]",
            help=help_text,
        )(func)
    return func


def build_field_options(
    field_values: Mapping[str, tuple[str, ...]],
    clear: tuple[str, ...],
    show_help: bool,
    usage: str,
) -> FieldOptions:
    """
    Convert click's parsed values into the resolver's option set.

    Raises:
        ArgumentError: If a field option was given more than once
    """
    values: dict[Field, str | None] = {}
    for field, _, _ in FIELD_OPTIONS:
        given = field_values.get(field.value) or ()
        if not given:
            continue
        if len(given) > 1:
            raise ArgumentError(f"Option '{field.value}' used more than once")
        values[field] = None if given[0] == PRINT_FLAG else given[0]

    return FieldOptions(values=values, clear=list(clear), help=show_help, usage=usage)


def _configure_logging(cfg: Config, verbose: int) -> None:
    # CLI flag takes precedence over the config file setting
    if verbose >= 2:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    else:
        log_level = getattr(logging, cfg.logging.level.upper(), logging.WARNING)

    configure_safe_logging(
        level=log_level,
        format_string=cfg.logging.format,
        hash_paths=cfg.logging.hash_paths,
    )


def _warn_shared_stdin(resolution: Resolution) -> None:
    reads_stdin = any(
        isinstance(c, SetImage) and isinstance(c.source, StdinImage) for c in resolution.commands
    )
    if reads_stdin and len(resolution.files) > 1:
        print_warning(
            "standard input is read once; files after the first will not receive the image"
        )


@click.command(cls=InsigniaCommand, add_help_option=False)
@click.option("-h", "--help", "show_help", is_flag=True, help="Print this help text")
@click.option("--clear", multiple=True, metavar="FIELD", help="Clear out a field")
@field_options
@click.option(
    COMMENT_OPTION,
    "comment",
    multiple=True,
    metavar="[STRING]",
    help="Accepted for compatibility and ignored",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration TOML file",
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v for INFO, -vv for DEBUG)")
@click.argument("files", nargs=-1)
@click.pass_context
def insignia(
    ctx: click.Context,
    show_help: bool,
    clear: tuple[str, ...],
    comment: tuple[str, ...],
    config: Path | None,
    verbose: int,
    files: tuple[str, ...],
    **field_values: tuple[str, ...],
) -> None:
    """
    Read and write audio file tags.

    Give a field option without a value to print it, or with a value to
    set it. With no field options the full tag summary of each FILE is shown.
    """
    try:
        cfg = Config.load(config)
        _configure_logging(cfg, verbose)
        if comment:
            logger.info("Ignoring --comment; comments are not edited")

        options = build_field_options(field_values, clear, show_help, ctx.get_help())
        resolution = resolve(options, files)
        _warn_shared_stdin(resolution)

        executor = CommandExecutor(config=cfg.tagging)
        executor.execute(resolution.commands, resolution.files)
    except HelpRequested as e:
        click.echo(e.message)
        ctx.exit(ExitCode.SUCCESS)
    except InsigniaError as e:
        logger.debug("Aborting with exit code %d", e.exit_code, exc_info=True)
        print_error(e.message)
        ctx.exit(e.exit_code)


def main() -> None:
    """Entry point for the insignia CLI."""
    insignia()


if __name__ == "__main__":
    main()
