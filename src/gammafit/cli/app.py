"""Main Typer application for gammafit.

Creates the application and registers the commands of the ``commands``
subpackage.
"""

from typing import Annotated

import typer

from gammafit.cli.callbacks import version_callback
from gammafit.cli.commands import fit_command, init_command

app = typer.Typer(
    name="gammafit",
    help="gammafit - Gaussian region fitting for gamma-ray spectra",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """gammafit - Fit Gaussian peaks on a linear background to a spectrum region.

    The number of peaks is adjusted between fit cycles by adding peaks at large
    residuals and deleting peaks that collide.
    """


app.command(name="fit")(fit_command)
app.command(name="init")(init_command)
