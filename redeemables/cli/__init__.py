"""
redeemables/cli/__init__.py

Redeemables CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    redeemables = "redeemables.cli:cli"

Adding a new command:
    1. Create redeemables/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from redeemables.cli.check import check_command
from redeemables.cli.context import context_command
from redeemables.cli.keys import keygen_command, sign_command


@click.group()
@click.version_option(package_name="redeemables")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging threshold for library output on stderr.",
)
def cli(log_level: str) -> None:
    """
    Redeemables — campaign tooling.

    \b
    Commands:
      check     Validate a campaign YAML file.
      keygen    Write a new Ed25519 signer key.
      sign      Build a signed context blob for a redemption.
      context   Build an unsigned context blob.

    \b
    Quick start:
      redeemables check campaign.yaml
      redeemables keygen signer.pem
      redeemables sign --key signer.pem --campaign-id 1 --fulfiller 0xabc... \\
          --offerer 0xdef... --item NON_FUNGIBLE,0x123...,7,1
    """
    logging.basicConfig(
        level=  getattr(logging, log_level.upper()),
        format= "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(check_command)
cli.add_command(keygen_command)
cli.add_command(sign_command)
cli.add_command(context_command)
