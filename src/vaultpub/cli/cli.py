"""CLI entrypoint: Typer app definition and command registration"""

import typer

from vaultpub.cli.commands import build_cmd, routes_cmd


app = typer.Typer(name="vaultpub", no_args_is_help=True, help="Publish a vault of linked markdown notes")

app.command(name="build")(build_cmd)
app.command(name="routes")(routes_cmd)
