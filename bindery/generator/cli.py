"""Command-line interface for bindery code generation."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from bindery.generator import python
from bindery.generator.loader import ValidationError, load
from bindery.generator.naming import resolve
from bindery.generator.shapes import has_simple_tier, shape_of
from bindery.generator.types import DescriptorUnit

logger = logging.getLogger(__name__)


def _load_units(input_file: str) -> list[DescriptorUnit]:
    with open(input_file, encoding="utf-8") as f:
        text = f.read()
    try:
        return load(text)
    except json.JSONDecodeError as err:
        click.echo(f"{input_file}: invalid JSON: {err}", err=True)
    except ValidationError as err:
        click.echo(f"{input_file}: {err}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Bindery RPC binding generator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input descriptor file (JSON)")
@click.option("--output", "-o", "output_path", default=".", help="Output directory")
@click.option(
    "--runtime-import",
    "runtime_import",
    default=python.DEFAULT_RUNTIME_IMPORT,
    show_default=True,
    help="Import path of the runtime package used by generated code",
)
def gen(input_file: str, output_path: str, runtime_import: str) -> None:
    """Generate client and server bindings from descriptor units."""
    units = _load_units(input_file)

    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    for unit in units:
        generated_file = python.render(unit, runtime_import=runtime_import)
        if generated_file is None:
            logger.info("%s declares no services, nothing generated", unit.source)
            continue
        target = output_dir / python.output_filename(unit)
        logger.debug("writing %s", target)
        target.write_text(generated_file, encoding="utf-8")
        click.echo(f"Generated {target}")


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input descriptor file (JSON)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display services, method shapes and generated identifiers."""
    units = _load_units(input_file)

    if output_json:
        _output_json(units)
    else:
        _output_plain(units)


def _output_json(units: list[DescriptorUnit]) -> None:
    """Output unit info as JSON."""
    data: dict = {"units": []}

    for unit in units:
        services = []
        for service in unit.services:
            names = resolve(service.name)
            services.append(
                {
                    "name": service.name,
                    "fullName": service.full_name,
                    "deprecated": service.deprecated,
                    "methods": [
                        {
                            "name": method.name,
                            "shape": shape_of(method).value,
                            "simpleTier": has_simple_tier(shape_of(method)),
                            "deprecated": method.deprecated,
                        }
                        for method in service.methods
                    ],
                    "identifiers": list(names.identifiers()),
                }
            )
        data["units"].append(
            {
                "source": unit.source,
                "package": unit.package,
                "output": python.output_filename(unit) if unit.services else None,
                "services": services,
            }
        )

    print(json.dumps(data, indent=2))


def _output_plain(units: list[DescriptorUnit]) -> None:
    """Output unit info using rich text formatting."""
    console = Console()

    for unit in units:
        label = f"[bold cyan]{unit.source}[/bold cyan]"
        if unit.package:
            label += f" [dim]({unit.package})[/dim]"
        console.print(label)

        if not unit.services:
            console.print("  [dim]no services[/dim]")
            console.print()
            continue

        for service in unit.services:
            names = resolve(service.name)
            deprecated = " [red](deprecated)[/red]" if service.deprecated else ""
            console.print(f"[bold]{service.full_name}[/bold]{deprecated}")

            method_table = Table(show_header=True, box=None, padding=(0, 2, 0, 2))
            method_table.add_column("Method", style="white")
            method_table.add_column("Shape", style="yellow")
            method_table.add_column("Simple tier", style="green")
            method_table.add_column("Deprecated", style="red")

            for method in service.methods:
                shape = shape_of(method)
                method_table.add_row(
                    method.name,
                    shape.value,
                    "yes" if has_simple_tier(shape) else "no",
                    "yes" if method.deprecated else "",
                )

            console.print(method_table)

            name_table = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
            name_table.add_column("Label", style="dim")
            name_table.add_column("Value", style="white")
            name_table.add_row("Client", names.client_constructor)
            name_table.add_row("Full handler", names.full_handler_constructor)
            name_table.add_row("Adaptive handler", names.adaptive_handler_constructor)
            name_table.add_row("Base server", names.unimplemented_server)

            console.print(name_table)
            console.print()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
