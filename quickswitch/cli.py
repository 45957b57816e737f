"""Command-line front-end for trying the switcher against a vault snapshot."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from pathlib import Path

import click
import msgspec
from click.exceptions import Exit
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import Settings, load_settings
from .exceptions import (
    ConfigFileError,
    ConfigurationError,
    QuickSwitchError,
    UnknownSearchModeError,
)
from .corpus import VaultSnapshot
from .display import suggestions_table
from .models import RankedItem
from .switcher import QuickSwitcher


LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2


@dataclass
class Context:
    """CLI context that holds shared resources."""

    settings: Settings
    console: Console
    debug: bool = False


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags.

    Only the ``quickswitch`` loggers follow the flags; ``--verbose`` exposes
    the per-query and per-index timings logged at DEBUG.
    """
    logging.basicConfig(
        level=logging.WARNING,
        format=DEBUG_LOG_FORMAT if debug else LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    if quiet:
        level = logging.ERROR
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.getLogger("quickswitch").setLevel(level)


def create_console(no_color: bool = False) -> Console:
    """Create Rich console; suggestions carry their own highlight styles."""
    return Console(
        no_color=no_color,
        highlight=False,
        color_system=None if no_color else "auto",
    )


class QuickSwitchGroup(click.Group):
    """Group that reports errors without tracebacks unless debugging.

    Configuration problems exit with status 2, everything else with 1.
    """

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except Exception as e:
            obj = ctx.obj if isinstance(ctx.obj, Context) else None
            if obj is not None and obj.debug:
                raise
            self._report(obj.console if obj else Console(stderr=True), e)
            code = EXIT_CONFIG_ERROR if isinstance(e, ConfigurationError) else EXIT_ERROR
            ctx.exit(code)

    @staticmethod
    def _report(console: Console, error: Exception) -> None:
        # Messages carry paths, keep them on one line
        say = functools.partial(console.print, soft_wrap=True)
        if isinstance(error, ConfigurationError):
            say(f"[red]Configuration error:[/red] {escape(str(error))}")
            if isinstance(error, UnknownSearchModeError):
                say("Run [bold]quickswitch modes[/bold] to list configured modes.")
            elif not isinstance(error, ConfigFileError):
                say(
                    "Check the config file or the QUICKSWITCH_* environment variables."
                )
        elif isinstance(error, QuickSwitchError):
            say(f"[red]Error:[/red] {escape(str(error))}")
        else:
            say(
                f"[red]Unexpected error:[/red] {escape(str(error))} "
                "(use --debug for a traceback)"
            )


async def collect_suggestions(switcher: QuickSwitcher, query: str) -> list[RankedItem]:
    """Run a query through the switcher, awaiting debounced results."""
    result = switcher.get_suggestions(query)
    if isinstance(result, asyncio.Future):
        return await result
    return result


@click.group(cls=QuickSwitchGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.version_option(
    version=__version__, prog_name="quickswitch", message="quickswitch version %(version)s"
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
) -> None:
    """Quick switcher search and ranking over a vault snapshot."""
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)
    # Context first, so a broken config file is reported through the console
    ctx.obj = Context(settings=Settings(), console=console, debug=debug)
    ctx.obj.settings = load_settings(config)


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("query", nargs=-1)
@click.option("--mode", "-m", help="Initial search mode name")
@click.option("--limit", "-n", type=int, help="Maximum suggestions to show")
@click.pass_context
def query(
    ctx: click.Context,
    snapshot: Path,
    query: tuple[str, ...],
    mode: str | None,
    limit: int | None,
) -> None:
    """Show suggestions for QUERY against a JSON vault SNAPSHOT.

    Start the query with a mode's command prefix (for example ":l ") to
    switch modes, just as in the interactive switcher.
    """
    settings = ctx.obj.settings
    if limit is not None:
        settings = msgspec.structs.replace(settings, max_number_of_suggestions=limit)

    vault = VaultSnapshot.load(snapshot)
    switcher = QuickSwitcher(vault, settings, mode)
    text = " ".join(query)
    results = asyncio.run(collect_suggestions(switcher, text))

    console = ctx.obj.console
    if not results:
        console.print(f"[yellow]No results found for:[/yellow] {text}")
        return
    console.print(suggestions_table(results, switcher.render_input(text)))


@cli.command()
@click.pass_context
def modes(ctx: click.Context) -> None:
    """List configured search modes."""
    table = Table(title="Search modes")
    table.add_column("Name", style="bold")
    table.add_column("Prefix")
    table.add_column("Fields")
    table.add_column("Sort priorities")

    for mode in ctx.obj.settings.search_commands:
        fields = ["name", "alias"]
        fields += [
            name
            for name, enabled in (
                ("tag", mode.search_by.tag),
                ("header", mode.search_by.header),
                ("link", mode.search_by.link),
            )
            if enabled
        ]
        if mode.is_backlink_search:
            fields = ["backlinks"]
        table.add_row(
            mode.name,
            repr(mode.command_prefix) if mode.command_prefix else "",
            ", ".join(fields),
            ", ".join(mode.sort_priorities),
        )
    ctx.obj.console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
