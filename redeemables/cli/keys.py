"""
redeemables keygen / sign — signer key tooling.

keygen writes a PEM Ed25519 private key and prints the signer address to
put in a campaign's `signer` field.

sign is the off-platform authorizer: it signs one redemption and prints
the full context blob (campaign id, redemption hash, salt, signature).
The digest must match what the offerer recomputes, so --offerer,
--domain-name and --domain-version must match the offerer's config.
"""

import os
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from redeemables.cli.context import parse_word
from redeemables.core.context import WORD, encode_context
from redeemables.core.crypto import Ed25519KeyManager
from redeemables.core.models import SpentItem
from redeemables.redemption.signature import SignatureDomain, sign_redemption


def parse_item(spec: str) -> SpentItem:
    """ITEM_TYPE,TOKEN,IDENTIFIER[,AMOUNT] → SpentItem."""
    parts = [p.strip() for p in spec.split(",")]
    if len(parts) not in (3, 4):
        raise click.BadParameter(
            f"expected ITEM_TYPE,TOKEN,IDENTIFIER[,AMOUNT], got {spec!r}"
        )
    data = {"item_type": parts[0], "token": parts[1], "identifier": parts[2]}
    if len(parts) == 4:
        data["amount"] = parts[3]
    try:
        return SpentItem.from_dict(data)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.command(name="keygen")
@click.argument("out", type=click.Path())
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file.")
def keygen_command(out: str, force: bool) -> None:
    """
    Generate an Ed25519 signer key.

    OUT is the PEM file to write. Prints the signer address.
    """
    path = Path(out)
    if path.exists() and not force:
        click.echo(f"Error: {out} exists (use --force to overwrite)", err=True)
        sys.exit(2)
    key = Ed25519KeyManager.generate()
    key.save(path)
    click.echo(key.signer_address)


@click.command(name="sign")
@click.option("--key", "key_path", type=click.Path(), required=True, help="Signer PEM file.")
@click.option("--campaign-id", type=int, required=True, help="Campaign id.")
@click.option("--fulfiller", required=True, help="Address the authorization is for.")
@click.option("--offerer", required=True, help="Offerer address (signature domain).")
@click.option(
    "--item", "items",
    multiple=True,
    required=True,
    metavar="TYPE,TOKEN,ID[,AMOUNT]",
    help="One spent item, in order. Repeat for each consideration item.",
)
@click.option("--redemption-hash", default=None, metavar="HEX32", help="Defaults to zero.")
@click.option("--salt", default=None, metavar="HEX32", help="Defaults to 32 random bytes.")
@click.option("--domain-name", default="Redeemables", show_default=True)
@click.option("--domain-version", default="1.0", show_default=True)
def sign_command(
    key_path:        str,
    campaign_id:     int,
    fulfiller:       str,
    offerer:         str,
    items:           Tuple[str, ...],
    redemption_hash: Optional[str],
    salt:            Optional[str],
    domain_name:     str,
    domain_version:  str,
) -> None:
    """
    Sign a redemption and print the context blob.

    \b
    Example:
      redeemables sign --key signer.pem --campaign-id 1 \\
          --fulfiller 0xabc... --offerer 0xdef... \\
          --item NON_FUNGIBLE,0x123...,7,1
    """
    try:
        key = Ed25519KeyManager.from_file(Path(key_path))
    except (FileNotFoundError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    spent      = [parse_item(spec) for spec in items]
    hash_bytes = parse_word(redemption_hash, "--redemption-hash") or b"\x00" * WORD
    salt_bytes = parse_word(salt, "--salt") or os.urandom(WORD)
    domain     = SignatureDomain(domain_name, domain_version, offerer)

    signature = sign_redemption(
        key, domain, campaign_id, fulfiller, spent, hash_bytes, salt_bytes,
    )
    blob = encode_context(campaign_id, hash_bytes, salt_bytes, signature)
    click.echo("0x" + blob.hex())
