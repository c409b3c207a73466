"""
anchorgen command-line tool.

    anchorgen generate counter.json -o counter_client.py
    anchorgen idl counter.json -o target/idl/counter.json
    anchorgen discriminator account Counter
"""
import json
import logging
import pathlib
import sys
from typing import Optional

import typer

from anchorgen_sdk import __version__
from anchorgen_sdk.codegen import generate_client, write_client
from anchorgen_sdk.config import GeneratorConfig
from anchorgen_sdk.discriminator import derive, format_discriminator
from anchorgen_sdk.exceptions import SchemaError
from anchorgen_sdk.idl import generate_idl_json, write_idl_file
from anchorgen_sdk.models import ProgramSchema

app = typer.Typer(help="Generate typed clients and IDLs from program schemas.", no_args_is_help=True)

logger = logging.getLogger("anchorgen_cli")


def should_use_color() -> bool:
    return sys.stdout.isatty()


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED if should_use_color() else None, err=True)
    raise typer.Exit(code=1)


def _load_schema(path: pathlib.Path) -> ProgramSchema:
    try:
        return ProgramSchema.from_file(path)
    except FileNotFoundError:
        _fail(f"schema file not found: {path}")
    except SchemaError as e:
        _fail(str(e))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"anchorgen {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def generate(
    schema_path: pathlib.Path = typer.Argument(..., help="Program schema or Anchor IDL (JSON)."),
    output: Optional[pathlib.Path] = typer.Option(None, "--output", "-o", help="Write the module here instead of stdout."),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", help="Instruction discriminator namespace (use 'global' for Anchor programs)."
    ),
    class_name: Optional[str] = typer.Option(None, "--class-name", help="Name of the generated client class."),
    no_collision_check: bool = typer.Option(False, "--no-collision-check", help="Skip discriminator collision checks."),
):
    """Generate a typed Python client module."""
    schema = _load_schema(schema_path)
    try:
        config = GeneratorConfig.from_env()
        overrides = {}
        if namespace is not None:
            overrides["instruction_namespace"] = namespace
        if class_name is not None:
            overrides["client_class_name"] = class_name
        if no_collision_check:
            overrides["check_collisions"] = False
        if overrides:
            config = GeneratorConfig(**{**config.model_dump(), **overrides})
    except ValueError as e:
        _fail(str(e))

    try:
        if output is None:
            typer.echo(generate_client(schema, config), nl=False)
        else:
            write_client(schema, output, config)
            typer.echo(f"Wrote {output}", err=True)
    except SchemaError as e:
        _fail(str(e))


@app.command()
def idl(
    schema_path: pathlib.Path = typer.Argument(..., help="Program schema (JSON)."),
    output: Optional[pathlib.Path] = typer.Option(None, "--output", "-o", help="Write the IDL here instead of stdout."),
    namespace: Optional[str] = typer.Option(None, "--namespace", help="Instruction discriminator namespace."),
):
    """Export an Anchor-style IDL for a program schema."""
    schema = _load_schema(schema_path)
    if output is None:
        typer.echo(generate_idl_json(schema, namespace), nl=False)
    else:
        write_idl_file(schema, output, namespace)
        typer.echo(f"Wrote {output}", err=True)


@app.command()
def discriminator(
    namespace: str = typer.Argument(..., help="Namespace, e.g. instruction, global, account or event."),
    name: str = typer.Argument(..., help="Entity name."),
):
    """Print the 8-byte discriminator for NAMESPACE:NAME as hex and as a byte list."""
    tag = derive(namespace, name)
    typer.echo(format_discriminator(tag))
    typer.echo(json.dumps(list(tag)))


if __name__ == "__main__":
    app()
