"""Command-line interface for inspecting record layouts."""

from __future__ import annotations

import json
import logging

import click
from lark.exceptions import LarkError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from podinfo.definition.builder import build_records
from podinfo.definition.parser import ValidationError, parse
from podinfo.definition.types import RecordDef
from podinfo.layout.record import DeclarationError
from podinfo.layout.registry import describe
from podinfo.layout.types import Compound, Descriptor, Tuple


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Plain-old-data layout inspector."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_time=False, show_path=False)],
        )


def _load(input_file: str) -> list[RecordDef]:
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        return parse(text)
    except (LarkError, ValidationError) as exc:
        raise click.ClickException(f"{input_file}: {exc}") from exc


def _describe_all(records: list[RecordDef], only: str | None) -> dict[str, Descriptor]:
    try:
        classes = build_records(records)
    except DeclarationError as exc:
        raise click.ClickException(str(exc)) from exc

    if only is not None:
        if only not in classes:
            raise click.ClickException(f"No record named {only}")
        classes = {only: classes[only]}

    return {name: describe(cls) for name, cls in classes.items()}


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Input layout definition file",
)
@click.option("--record", "-r", "record_name", default=None, help="Only show this record")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, record_name: str | None, output_json: bool) -> None:
    """Display record sizes and field offsets on this platform."""
    records = _load(input_file)
    descriptors = _describe_all(records, record_name)
    packing = {r.name: r.pack for r in records}

    if output_json:
        _output_json(descriptors, packing)
    else:
        _output_plain(descriptors, packing)


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Input layout definition file",
)
def dump(input_file: str) -> None:
    """Print parsed layout definitions as JSON."""
    records = _load(input_file)
    print(json.dumps([r.to_dict() for r in records], indent=2))


def _format_packing(pack: int | None) -> str:
    return "default" if pack is None else f"packed({pack})"


def _output_json(descriptors: dict[str, Descriptor], packing: dict[str, int | None]) -> None:
    """Output descriptors as JSON."""
    data = {
        name: {"pack": packing[name], "descriptor": descriptor.to_dict()}
        for name, descriptor in descriptors.items()
    }
    print(json.dumps(data, indent=2))


def _output_plain(descriptors: dict[str, Descriptor], packing: dict[str, int | None]) -> None:
    """Output descriptors using rich text formatting."""
    console = Console()

    for name, descriptor in descriptors.items():
        size = descriptor.size()
        console.print(
            f"[bold cyan]{name}[/bold cyan] "
            f"[yellow]{size} byte{'s' if size != 1 else ''}[/yellow] "
            f"[dim]{_format_packing(packing[name])}[/dim]"
        )

        table = Table(show_header=True, box=None, padding=(0, 2, 0, 2))
        table.add_column("Field", style="white")
        table.add_column("Type", style="green")
        table.add_column("Offset", style="yellow", justify="right")
        table.add_column("Size", style="yellow", justify="right")

        if isinstance(descriptor, Compound):
            for field in descriptor.fields:
                table.add_row(
                    field.name, escape(str(field.type)), str(field.offset), str(field.type.size())
                )
        elif isinstance(descriptor, Tuple):
            for index, positional in enumerate(descriptor.fields):
                table.add_row(
                    str(index),
                    escape(str(positional.type)),
                    str(positional.offset),
                    str(positional.type.size()),
                )

        console.print(table)
        console.print()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
