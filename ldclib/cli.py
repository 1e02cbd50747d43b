"""
ldclib command-line interface.

Provides commands to compute a load duration curve for a USGS gage and a
water-quality export, and to list the flow regimes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from ldclib.config import DEFAULT_STANDARD, DUPLICATE_POLICIES, TIE_METHODS
from ldclib.core import LDCError


@click.group()
def cli() -> None:
    """ldclib - Load duration curve tools."""
    pass


@cli.command()
@click.argument("site_no")
@click.option(
    "--concentrations",
    "conc_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Delimited water-quality result export.",
)
@click.option("--start", "start_date", default=None, help="First flow date (YYYY-MM-DD).")
@click.option("--end", "end_date", default=None, help="Last flow date (YYYY-MM-DD).")
@click.option("--standard", type=float, default=None, help=f"Criterion per 100 mL [{DEFAULT_STANDARD:g}].")
@click.option("--characteristic", default=None, help="Keep only this CharacteristicName.")
@click.option("--sep", default=",", show_default=True, help="Field delimiter of the export.")
@click.option("--duplicates", type=click.Choice(DUPLICATE_POLICIES), default="mean", show_default=True)
@click.option("--ties", type=click.Choice(TIE_METHODS), default="ordinal", show_default=True)
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for loads.csv, regime_summary.csv and ldc.png.",
)
@click.option("--plot/--no-plot", default=False, help="Save the load duration curve figure.")
@click.option("--format", "fmt", type=click.Choice(["text", "json"]), default="text")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
def run(
    site_no: str,
    conc_path: Path,
    start_date: str,
    end_date: str,
    standard: float,
    characteristic: str,
    sep: str,
    duplicates: str,
    ties: str,
    output_dir: Path,
    plot: bool,
    fmt: str,
    verbose: bool,
) -> None:
    """Compute the load duration curve for SITE_NO."""
    from ldclib import analyze_site
    from ldclib.config import LDCConfig

    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = LDCConfig.from_env(
            site_no=site_no,
            standard=standard,
            start_date=start_date,
            end_date=end_date,
            duplicate_policy=duplicates,
            ties=ties,
        )
        out = analyze_site(
            config,
            conc_path,
            characteristic=characteristic,
            sep=sep,
            output_dir=output_dir,
            plot=plot,
        )
    except LDCError as e:
        raise click.ClickException(str(e))

    engine = out["engine"]
    if fmt == "json":
        click.echo(json.dumps(engine.to_dict(), indent=2))
    else:
        click.echo(engine.summary())
        for path in out["files"]:
            click.echo(f"Wrote {path}")


@cli.command()
def regimes() -> None:
    """List the flow regimes and their exceedance intervals."""
    from ldclib.regimes import regime_table

    click.echo(regime_table().to_string(index=False))


if __name__ == "__main__":
    cli()
