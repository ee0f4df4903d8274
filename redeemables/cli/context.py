"""
redeemables context — unsigned context blob.

Prints the hex context a fulfiller passes to generate_order or as
safe-transfer data, for campaigns without a signer.
"""

from typing import Optional

import click

from redeemables.core.context import WORD, encode_context


def parse_word(value: Optional[str], name: str) -> Optional[bytes]:
    """Hex string (0x optional) → exactly 32 bytes. None passes through."""
    if value is None:
        return None
    text = value[2:] if value.lower().startswith("0x") else value
    try:
        raw = bytes.fromhex(text)
    except ValueError:
        raise click.BadParameter(f"{name} must be hex") from None
    if len(raw) != WORD:
        raise click.BadParameter(f"{name} must be {WORD} bytes, got {len(raw)}")
    return raw


@click.command(name="context")
@click.option("--campaign-id", type=int, required=True, help="Campaign id.")
@click.option(
    "--redemption-hash",
    default=None,
    metavar="HEX32",
    help="Off-platform redemption reference. Defaults to 32 zero bytes.",
)
def context_command(campaign_id: int, redemption_hash: Optional[str]) -> None:
    """
    Encode an unsigned context blob.

    \b
    Example:
      redeemables context --campaign-id 1
    """
    hash_bytes = parse_word(redemption_hash, "--redemption-hash") or b"\x00" * WORD
    try:
        blob = encode_context(campaign_id, hash_bytes)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    click.echo("0x" + blob.hex())
