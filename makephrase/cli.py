#!/usr/bin/env python3
"""
makephrase: translate application text with rule-based, argument-aware
translations, and inspect translation files.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.markup import escape
from rich.table import Table

from makephrase import ui
from makephrase.completions import (
    complete_dump_format,
    complete_numeric_format,
    complete_store_name,
)
from makephrase.error_handler import _debug_mode, handle_errors

app = typer.Typer(
    name="makephrase",
    help="Rule-based phrase translation.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    name="config",
    help="Manage makephrase configuration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config", help="Manage configuration", rich_help_panel="Setup")


@app.callback()
def main_callback(
    language: Optional[str] = typer.Option(
        None, "--language", "-l",
        help="Preferred languages, comma separated (e.g. en_AU,fr). Overrides MAKEPHRASE_LANGUAGES.",
    ),
    store: Optional[str] = typer.Option(
        None, "--store", "-s",
        help="Rule store: memory, file, directory, sql. Overrides MAKEPHRASE_STORE.",
        autocompletion=complete_store_name,
    ),
    path: Optional[str] = typer.Option(
        None, "--path", "-p",
        help="Translation file or directory for the file/directory stores.",
    ),
    numeric_format: Optional[str] = typer.Option(
        None, "--numeric-format", "-n",
        help="Number grouping: none, comma, dot.",
        autocompletion=complete_numeric_format,
    ),
    panic: bool = typer.Option(
        False, "--panic", help="Fall back to related languages as a last resort.",
    ),
    plain: bool = typer.Option(False, "--plain", help="Plain output without colors."),
):
    """Rule-based phrase translation."""
    # Overrides go through the environment so the config service picks them up
    overrides = {
        "MAKEPHRASE_LANGUAGES": language,
        "MAKEPHRASE_STORE": store,
        "MAKEPHRASE_STORE_PATH": path,
        "MAKEPHRASE_NUMERIC_FORMAT": numeric_format,
        "MAKEPHRASE_PANIC": "1" if panic else None,
    }
    for env_var, value in overrides.items():
        if value:
            os.environ[env_var] = value
    if path and not store and not os.environ.get("MAKEPHRASE_STORE"):
        os.environ["MAKEPHRASE_STORE"] = "directory" if Path(path).is_dir() else "file"

    from makephrase.config import reset_config_service
    reset_config_service()

    if plain:
        ui.set_plain_mode()
    if _debug_mode():
        from rich.logging import RichHandler
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s: %(message)s",
            handlers=[RichHandler(console=ui.console, show_path=False)],
        )


def _engine():
    from makephrase.engine import MakePhrase
    return MakePhrase.from_config()


# ── Translation ──

@app.command(rich_help_panel="Translate")
@handle_errors
def translate(
    key: str = typer.Argument(..., help="Text to translate"),
    args: Optional[List[str]] = typer.Argument(None, help="Values for [_1], [_2], ..."),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Translation context"),
    encoding: Optional[str] = typer.Option(
        None, "--encoding", "-e", help="Write the result encoded in this character set",
    ),
):
    """[bold cyan]Translate[/bold cyan] a key with optional arguments."""
    if encoding:
        os.environ["MAKEPHRASE_ENCODING"] = encoding
        from makephrase.config import reset_config_service
        reset_config_service()
    mp = _engine()
    text = mp.context_translate(context, key, *(args or []))
    if encoding:
        typer.echo(mp.encode(text + "\n"), nl=False)
    else:
        typer.echo(text)


@app.command(rich_help_panel="Translate")
@handle_errors
def chain():
    """Show the resolved language [bold]fallback chain[/bold]."""
    mp = _engine()
    if ui.is_plain():
        typer.echo(",".join(mp.languages))
        return
    for i, tag in enumerate(mp.languages, start=1):
        ui.console.print(f"  [dim]{i}.[/dim] [lang]{tag}[/lang]")
    modules = mp.language_modules
    if modules:
        names = ", ".join(f"{type(m).__name__} ({m.tag})" for m in modules)
        ui.console.print(f"[dim]Language modules: {names}[/dim]")


@app.command("eval", rich_help_panel="Inspect")
@handle_errors
def eval_expression(
    expression: str = typer.Argument(..., help="Guard expression, e.g. '_1 == 1'"),
    args: Optional[List[str]] = typer.Argument(None, help="Values for _1, _2, ..."),
):
    """[bold cyan]Evaluate[/bold cyan] a guard expression against arguments."""
    from makephrase.expression import evaluate

    result = evaluate(expression, args or [])
    typer.echo("true" if result else "false")
    if not result:
        raise typer.Exit(1)


@app.command(rich_help_panel="Inspect")
@handle_errors
def explain(
    key: str = typer.Argument(..., help="Text to translate"),
    args: Optional[List[str]] = typer.Argument(None, help="Values for [_1], [_2], ..."),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Translation context"),
):
    """Show every candidate rule in selection order and which one wins."""
    mp = _engine()
    values = args or []
    report = mp.explain(context, key, *values)

    table = Table(title=f"Candidates for {escape(key)}", show_header=True)
    table.add_column("", width=4)
    table.add_column("Language", style="lang")
    table.add_column("Priority", justify="right")
    table.add_column("Expression")
    table.add_column("Translation")

    winner_seen = False
    for rule, outcome, note in report:
        if outcome is None:
            mark = ui.icon("error")
            expr = f"{escape(rule.expression)} [red]({escape(note)})[/red]"
        elif outcome and not winner_seen:
            winner_seen = True
            mark = ui.icon("winner")
            expr = escape(rule.expression) or "[dim](always)[/dim]"
        else:
            mark = ui.icon("match" if outcome else "nomatch")
            expr = escape(rule.expression) or "[dim](always)[/dim]"
        table.add_row(mark, rule.language, str(rule.priority), expr, escape(rule.translation))

    if report:
        ui.console.print(table)
    else:
        ui.console.print("[dim]No candidate rules in the fallback chain.[/dim]")
    if not winner_seen:
        ui.console.print("[dim]No rule matched; the key is used as the translation.[/dim]")
    ui.console.print(
        f"[bold]Result:[/bold] {escape(mp.context_translate(context, key, *values))}"
    )


# ── Translation files ──

def _translation_files(path: Path) -> list[tuple[Path, Optional[str]]]:
    from makephrase.langtags import is_language_tag
    from makephrase.stores.directory import FILE_EXTENSION

    if path.is_dir():
        files = []
        for f in sorted(path.glob(f"*{FILE_EXTENSION}")):
            language = f.name[: -len(FILE_EXTENSION)]
            if is_language_tag(language):
                files.append((f, language))
        return files
    return [(path, None)]


@app.command(rich_help_panel="Inspect")
@handle_errors
def check(
    path: Path = typer.Argument(..., help="Translation file or directory of <language>.mpt files"),
    encoding: str = typer.Option("utf-8", "--encoding", "-e", help="File encoding"),
):
    """[bold cyan]Check[/bold cyan] translation files for syntax and guard errors."""
    from makephrase.errors import ExpressionError, RepositoryError, TranslationFileError
    from makephrase.expression import parse
    from makephrase.stores.parser import parse_translation_file

    if not path.exists():
        raise RepositoryError(f"No such file or directory: {path}", store="file")

    problems: list[tuple[str, str]] = []
    total = 0
    for file_path, language in _translation_files(path):
        try:
            rules = parse_translation_file(file_path, encoding=encoding, language=language)
        except TranslationFileError as e:
            problems.append((str(file_path), str(e)))
            continue
        total += len(rules)
        for rule in rules:
            if not rule.expression:
                continue
            try:
                parse(rule.expression)
            except ExpressionError as e:
                problems.append((str(file_path), f"key '{rule.key}': {e}"))

    if not problems:
        ui.console.print(f"{ui.icon('match')} {total} rules OK")
        return

    table = Table(title="Problems", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Problem")
    for file_name, message in problems:
        table.add_row(escape(file_name), escape(message))
    ui.console.print(table)
    raise typer.Exit(1)


@app.command(rich_help_panel="Inspect")
@handle_errors
def dump(
    path: Path = typer.Argument(..., help="Translation file or directory of <language>.mpt files"),
    output_format: str = typer.Option(
        "yaml", "--format", "-f", help="Output format: yaml or table",
        autocompletion=complete_dump_format,
    ),
    encoding: str = typer.Option("utf-8", "--encoding", "-e", help="File encoding"),
):
    """List the rules of a translation file or directory."""
    from makephrase.errors import RepositoryError
    from makephrase.stores.parser import parse_translation_file

    if output_format not in ("yaml", "table"):
        ui.console.print(f"[red]Unknown format '{escape(output_format)}'. Use yaml or table.[/red]")
        raise typer.Exit(2)
    if not path.exists():
        raise RepositoryError(f"No such file or directory: {path}", store="file")
    rules = []
    for file_path, language in _translation_files(path):
        rules.extend(parse_translation_file(file_path, encoding=encoding, language=language))

    if output_format == "yaml":
        typer.echo(yaml.safe_dump(
            [rule.to_dict() for rule in rules],
            allow_unicode=True,
            sort_keys=False,
            default_flow_style=False,
        ), nl=False)
        return

    table = Table(show_header=True)
    for column in ("Key", "Language", "Context", "Priority", "Expression", "Translation"):
        table.add_column(column)
    for rule in rules:
        table.add_row(
            escape(rule.key), rule.language, escape(rule.context), str(rule.priority),
            escape(rule.expression), escape(rule.translation),
        )
    ui.console.print(table)


# ── Configuration ──

@config_app.command("show")
@handle_errors
def config_show():
    """Display the resolved configuration (all layers merged)."""
    from rich.panel import Panel
    from makephrase.config import get_config_service

    info = get_config_service().show()
    sources = info["sources"]
    ui.console.print(Panel(
        f"Global:  {sources['global_config'] or '[dim]not found[/dim]'}\n"
        f"Project: {sources['project_config'] or '[dim]not found[/dim]'}",
        title="Config Sources",
        border_style="cyan",
    ))

    for section in ("engine", "store"):
        values = info["resolved"].get(section, {})
        table = Table(title=section.capitalize(), show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for key, val in values.items():
            if isinstance(val, list):
                val = ",".join(str(v) for v in val)
            if section == "store" and key == "url" and val:
                val = _redact_url(str(val))
            table.add_row(key, escape(str(val)) if val not in ("", None) else "[dim]not set[/dim]")
        ui.console.print(table)


def _redact_url(url: str) -> str:
    """Hide the password in a database URL."""
    from sqlalchemy.engine import make_url
    from sqlalchemy.exc import ArgumentError

    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url


@config_app.command("set")
@handle_errors
def config_set(
    key: str = typer.Argument(..., help="Config key in dotted notation (e.g. engine.numeric_format)"),
    value: str = typer.Argument(..., help="Value to set"),
):
    """Set a global configuration value."""
    from makephrase.config import get_config_service, parse_value

    parsed_value: object = parse_value(value)
    if key == "engine.languages" and isinstance(parsed_value, str):
        parsed_value = [v.strip() for v in parsed_value.split(",") if v.strip()]
    get_config_service().set_global(key, parsed_value)
    ui.console.print(f"[green]Set[/green] {escape(key)} = {escape(str(parsed_value))}")


@config_app.command("path")
@handle_errors
def config_path():
    """Show where configuration files are read from."""
    from makephrase.config import get_config_service

    for name, location in get_config_service().config_paths().items():
        ui.console.print(f"[cyan]{name}[/cyan]: {escape(location)}")


@config_app.command("init")
@handle_errors
def config_init():
    """Create a .makephrase.toml in the current directory."""
    from makephrase.config import get_config_service

    try:
        path = get_config_service().init_project_config()
    except FileExistsError as e:
        ui.console.print(f"[yellow]{escape(str(e))}[/yellow]")
        raise typer.Exit(1)
    ui.console.print(f"[green]Created[/green] {escape(str(path))}")


if __name__ == "__main__":
    app()
