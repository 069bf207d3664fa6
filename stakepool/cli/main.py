#!/usr/bin/env python3
"""
StakePool CLI

Command-line interface for replaying staking scenarios and inspecting
configuration.

Usage:
    stakepool simulate <scenario.toml> [--config FILE] [--json]
    stakepool config [FILE]
"""

import asyncio
import json
from typing import Optional

import click

from .. import __version__
from ..config.loader import load_config
from ..exceptions import StakePoolException
from ..logger import configure_logging, set_log_level
from ..simulation import Scenario, run_scenario
from ..tokens.ledger import format_units


@click.group()
@click.version_option(version=__version__, prog_name="stakepool")
def cli():
    """StakePool Command Line Interface

    Replay staking-rewards scenarios against a simulated clock.
    """
    configure_logging()


@cli.command("simulate")
@click.argument("scenario_file", type=click.Path())
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(),
    default=None,
    help="Pool config TOML (default: $STAKEPOOL_CONFIG or ./config.toml)"
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print the report as JSON"
)
def simulate_cmd(scenario_file: str, config_path: Optional[str], as_json: bool):
    """Replay a scenario and print each account's position.

    Examples:

        stakepool simulate scenarios/two_stakers.toml

        stakepool simulate run.toml --config pool.toml --json
    """
    try:
        config = load_config(config_path)
        set_log_level(config.logging.level)
        scenario = Scenario.from_file(scenario_file)
        report = asyncio.run(run_scenario(scenario, config))
    except StakePoolException as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    def fmt(amount: int) -> str:
        return format_units(amount, report.decimals)

    click.echo(click.style("Accounts", fg="green", bold=True))
    click.echo(f"  {'account':<16}{'wallet':>14}{'staked':>14}{'earned':>14}{'claimed':>14}")
    for a in report.accounts:
        click.echo(
            f"  {a.account:<16}{fmt(a.wallet):>14}{fmt(a.staked):>14}"
            f"{fmt(a.earned):>14}{fmt(a.claimed):>14}"
        )

    pool = report.pool
    click.echo()
    click.echo(click.style("Pool", fg="green", bold=True))
    click.echo(f"  time:          {pool.timestamp}")
    click.echo(f"  reward rate:   {pool.reward_rate}/s")
    click.echo(f"  total staked:  {fmt(pool.total_staked)}")
    click.echo(f"  reserve:       {fmt(pool.reward_reserve)}")
    click.echo(f"  outstanding:   {fmt(pool.outstanding_rewards)}")
    click.echo(f"  events:        {report.events}")
    if pool.available_reserve < 0:
        click.echo(click.style(
            f"  ⚠️  underfunded by {fmt(-pool.available_reserve)}", fg="yellow"
        ))


@cli.command("config")
@click.argument("config_path", type=click.Path(), required=False)
def config_cmd(config_path: Optional[str]):
    """Show the effective configuration (file + environment) as JSON."""
    try:
        config = load_config(config_path)
    except StakePoolException as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(config.to_dict(), indent=2))


def main():
    cli()


if __name__ == "__main__":
    main()
