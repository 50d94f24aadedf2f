"""ein command line."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import click

from ein import __version__
from ein.ast_nodes import Node
from ein.compiler import compile_file
from ein.config import EinConfig, find_config, load_config
from ein.errors import DiagnosticRenderer, InternalError, TemplateError
from ein.lexer import lex_all


def _configure_logging(ctx: click.Context, config: EinConfig | None = None) -> None:
    if ctx.obj.get("debug"):
        level = logging.DEBUG
    elif config is not None:
        level = logging.getLevelName(config.log.level)
        if not isinstance(level, int):
            raise click.BadParameter(f"unknown log level {config.log.level!r} in config")
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s")


def _compile_or_report(template: Path, renderer: DiagnosticRenderer) -> Node | None:
    """Compile one template. Renders the diagnostic and returns None on failure."""
    try:
        return compile_file(template)
    except (TemplateError, InternalError) as e:
        diag = e.diagnostic
        diag.file = str(template)
        click.echo(renderer.render(diag), err=True)
        return None


@click.group()
@click.version_option(__version__, prog_name="ein")
@click.option("--debug", is_flag=True, help="Log lexer and parser activity to stderr.")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """The ein template compiler."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def lex(ctx: click.Context, file: str) -> None:
    """Print the token stream of a template."""
    _configure_logging(ctx)
    with open(file, encoding="utf-8") as f:
        for token in lex_all(f):
            click.echo(str(token))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def view(ctx: click.Context, file: str) -> None:
    """View the AST of a template."""
    _configure_logging(ctx)
    root = _compile_or_report(Path(file), DiagnosticRenderer(color=True))
    if root is None:
        raise SystemExit(1)
    _dump_ast(root, 0)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@click.pass_context
def check(ctx: click.Context, path: str) -> None:
    """Compile every template of a project and report errors."""
    start = Path(path)
    try:
        config_path = find_config(start)
        config = load_config(config_path)
        project_dir = config_path.parent
    except FileNotFoundError:
        config = EinConfig()
        project_dir = start if start.is_dir() else start.parent
    _configure_logging(ctx, config)

    src_dir = project_dir / config.templates.source_dir
    if not src_dir.is_dir():
        src_dir = project_dir  # fallback to project root

    suffixes = set(config.templates.suffixes)
    templates = sorted(p for p in src_dir.rglob("*") if p.is_file() and p.suffix in suffixes)
    if not templates:
        click.echo("warning: no templates found", err=True)
        return

    renderer = DiagnosticRenderer(color=True)
    failed = sum(1 for t in templates if _compile_or_report(t, renderer) is None)

    click.echo(f"checked {len(templates)} template(s), {failed} failed")
    if failed:
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def highlight(file: str) -> None:
    """Print a template with syntax highlighting."""
    from pygments import highlight as render_highlight
    from pygments.formatters import TerminalFormatter

    from ein.highlight import EinLexer

    source = Path(file).read_text(encoding="utf-8")
    click.echo(render_highlight(source, EinLexer(), TerminalFormatter()), nl=False)


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if dataclasses.is_dataclass(node):
        click.echo(f"{indent}{name}")
        for field in dataclasses.fields(node):
            value = getattr(node, field.name)
            if isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field.name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field.name}: []")
            elif dataclasses.is_dataclass(value):
                click.echo(f"{indent}  {field.name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field.name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
