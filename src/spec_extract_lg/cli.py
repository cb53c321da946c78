from pathlib import Path

import typer
from tabulate import tabulate

from .config import load_settings
from .logging_setup import configure_logging
from .models import ParsingOptions
from .parser import TableParser

app = typer.Typer(help="Specification table extraction (LangGraph per-table pipeline)")


def _parser(config_path: str | None) -> TableParser:
    settings = load_settings(config_path)
    configure_logging(settings.log_level, settings.log_json)
    return TableParser(settings=settings)


def _read(html_file: Path) -> str:
    return html_file.read_text(encoding="utf-8", errors="replace")


@app.command()
def parse(
    html_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="HTML file to parse"),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON envelope instead of a summary"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Disable the result cache"),
    throw_on_error: bool = typer.Option(False, help="Re-raise document-level failures"),
    config_path: str = typer.Option(None, "--config", help="Path to YAML settings file"),
):
    """Parse every specification table in an HTML file."""
    parser = _parser(config_path)
    options = ParsingOptions(enable_caching=not no_cache, throw_on_error=throw_on_error)
    html = _read(html_file)

    if as_json:
        typer.echo(parser.parse_to_json(html, options))
        return

    result = parser.parse(html, options)
    rows = [
        {
            "Table": i,
            "Product": spec.product_name or "-",
            "Structure": spec.metadata.structure.value,
            "Confidence": round(spec.metadata.confidence, 2),
            "Vendor": spec.source.vendor,
            "Specs": len(spec.specifications),
            "Quality": round(spec.quality.overall_score, 2),
        }
        for i, spec in enumerate(result.data)
    ]
    if rows:
        print(tabulate(rows, headers="keys", tablefmt="grid"))
    else:
        typer.echo("No specification tables found")

    if result.warnings:
        typer.echo("\n## Warnings")
        for w in result.warnings:
            typer.echo(f"- {w}")
    if result.errors:
        typer.echo("\n## Errors")
        for e in result.errors:
            typer.echo(f"- {e}")
        raise typer.Exit(code=1)


@app.command()
def show(
    html_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="HTML file to parse"),
    config_path: str = typer.Option(None, "--config", help="Path to YAML settings file"),
):
    """Print the flat key/value pairs of each table."""
    parser = _parser(config_path)
    result = parser.parse(_read(html_file), ParsingOptions(enable_caching=False))

    for i, spec in enumerate(result.data):
        typer.echo(f"\n## Table {i}: {spec.product_name or spec.source.vendor}")
        rows = [
            {"Key": key, "Value": value, "Category": spec.typed_specifications[key].category}
            for key, value in spec.flat_specifications().items()
        ]
        print(tabulate(rows, headers="keys"))


if __name__ == "__main__":
    app()
