"""Unified CLI error handler for makephrase commands."""

from __future__ import annotations

import functools
import logging
import os
import traceback

import typer
from rich.markup import escape

from makephrase.errors import (
    BadArgumentError,
    ConfigError,
    ExpressionError,
    MakePhraseError,
    RepositoryError,
    TranslationFileError,
)
from makephrase import ui

logger = logging.getLogger("makephrase.error_handler")


def _debug_mode() -> bool:
    """Check if debug output is enabled via MAKEPHRASE_DEBUG env var."""
    return os.environ.get("MAKEPHRASE_DEBUG", "").lower() in ("1", "true", "yes")


def _render_error(e: MakePhraseError) -> None:
    """Render a MakePhraseError with Rich formatting and context."""
    console = ui.console
    console.print(f"\n[bold red]Error:[/bold red] {escape(str(e))}", highlight=False)

    # Context details (only in debug mode)
    if e.context and _debug_mode():
        context_parts = [
            f"  [dim]{key}:[/dim] {escape(str(value))}" for key, value in e.context.items() if value
        ]
        if context_parts:
            console.print("[dim]Context:[/dim]")
            for part in context_parts:
                console.print(part)

    # Actionable hints based on error type
    if isinstance(e, TranslationFileError):
        console.print("[dim]Run 'makephrase check <path>' to list every problem in the file.[/dim]")
    elif isinstance(e, RepositoryError):
        console.print("[dim]Run 'makephrase config show' to check the store settings.[/dim]")
    elif isinstance(e, ConfigError):
        console.print("[dim]Run 'makephrase config path' to see which config files are read.[/dim]")
    elif isinstance(e, ExpressionError):
        console.print("[dim]Operators: == != < > <= >= eq ne, joined with &&.[/dim]")
    elif isinstance(e, BadArgumentError):
        console.print("[dim]Supply every \\[_N] argument, or unset MAKEPHRASE_STRICT.[/dim]")


def handle_errors(func):
    """Decorator that catches MakePhraseError and renders formatted CLI output.

    Replaces scattered try/except blocks in command functions.
    Usage::

        @app.command()
        @handle_errors
        def my_command(...):
            ...  # no try/except needed
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MakePhraseError as e:
            _render_error(e)
            if _debug_mode():
                ui.console.print(f"\n[dim]{escape(traceback.format_exc())}[/dim]")
            raise typer.Exit(e.exit_code)
        except KeyboardInterrupt:
            ui.console.print("\n[dim]Interrupted.[/dim]")
            raise typer.Exit(130)
        except (typer.Exit, typer.Abort, SystemExit):
            raise
        except Exception as e:
            ui.console.print(f"\n[bold red]Unexpected error:[/bold red] {escape(str(e))}")
            if _debug_mode():
                ui.console.print(f"\n[dim]{escape(traceback.format_exc())}[/dim]")
            else:
                ui.console.print("[dim]Set MAKEPHRASE_DEBUG=1 for full traceback.[/dim]")
            raise typer.Exit(1)

    return wrapper
