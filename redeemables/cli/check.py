"""
redeemables check — campaign file validation.

Runs the manager-independent upsert checks against a campaign YAML file
so a bad campaign is caught before anyone submits it.

Exit codes:
    0  Campaign valid
    1  Campaign rejected (error code printed)
    2  Error  (file missing, malformed YAML, unparseable values)
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml

from redeemables.config import load_campaign_file
from redeemables.core.exceptions import ConfigError
from redeemables.registry.registry import CampaignRegistry


def _summary(params, uri: str, now: Optional[int]) -> Dict[str, Any]:
    summary = {
        "offer_items":           len(params.offer),
        "consideration_items":   len(params.consideration),
        "start_time":            params.start_time,
        "end_time":              params.end_time,
        "max_total_redemptions": params.max_total_redemptions,
        "manager":               params.manager,
        "signer":                params.signer,
        "uri":                   uri,
    }
    if now is not None:
        summary["active"] = params.start_time <= now < params.end_time
    return summary


@click.command(name="check")
@click.argument("campaign_yaml", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--now",
    type=int,
    default=None,
    metavar="UNIX_SECONDS",
    help="Also report whether the campaign window contains this instant.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
def check_command(campaign_yaml: str, fmt: str, now: Optional[int], quiet: bool) -> None:
    """
    Validate a campaign definition.

    CAMPAIGN_YAML is a file with a `campaign:` mapping and an optional `uri:`.

    \b
    Examples:
      redeemables check campaign.yaml
      redeemables check campaign.yaml --format json --now 1750000000
    """
    path = Path(campaign_yaml)
    if not path.exists():
        _emit({"valid": False, "error": f"File not found: {campaign_yaml}"}, fmt, quiet)
        sys.exit(2)

    try:
        params, uri = load_campaign_file(path)
    except (yaml.YAMLError, KeyError, TypeError, ValueError) as exc:
        _emit({"valid": False, "error": f"Cannot parse {campaign_yaml}: {exc}"}, fmt, quiet)
        sys.exit(2)

    try:
        CampaignRegistry.validate_params(params)
        CampaignRegistry.validate_recipients(params)
    except ConfigError as exc:
        _emit({"valid": False, "code": exc.code, "error": str(exc)}, fmt, quiet)
        sys.exit(1)

    _emit({"valid": True, "campaign": _summary(params, uri, now)}, fmt, quiet)
    sys.exit(0)


def _emit(result: Dict[str, Any], fmt: str, quiet: bool) -> None:
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps(result, indent=2))
        return
    if result["valid"]:
        click.echo("Campaign valid")
        for key, value in result["campaign"].items():
            click.echo(f"  {key:<22} {value}")
    elif "code" in result:
        click.echo(f"Campaign rejected: {result['code']}", err=True)
        click.echo(f"  {result['error']}", err=True)
    else:
        click.echo(f"Error: {result['error']}", err=True)
