"""
Order context blob codec.

Layout (fixed, big-endian 32-byte words):
    [0:32)    campaign id
    [32:64)   redemption hash
    [64:96)   salt        — only when the campaign has a signer
    [96:end)  signature   — only when the campaign has a signer
"""

from dataclasses import dataclass
from typing import Optional

from redeemables.core.exceptions import MalformedContext


WORD = 32
_MAX_WORD = 1 << (8 * WORD)


@dataclass(frozen=True)
class DecodedContext:
    campaign_id:     int
    redemption_hash: bytes
    salt:            Optional[bytes]
    signature:       Optional[bytes]


def _word(value: int) -> bytes:
    if not 0 <= value < _MAX_WORD:
        raise ValueError(f"value does not fit in a 32-byte word: {value}")
    return value.to_bytes(WORD, "big")


def _fixed(value: bytes, name: str) -> bytes:
    value = bytes(value)
    if len(value) != WORD:
        raise ValueError(f"{name} must be exactly {WORD} bytes, got {len(value)}")
    return value


def encode_context(
    campaign_id:     int,
    redemption_hash: bytes = b"\x00" * WORD,
    salt:            Optional[bytes] = None,
    signature:       bytes = b"",
) -> bytes:
    """Build a context blob. Pass salt (and signature) for signer campaigns."""
    blob = _word(campaign_id) + _fixed(redemption_hash, "redemption_hash")
    if salt is not None:
        blob += _fixed(salt, "salt") + bytes(signature)
    elif signature:
        raise ValueError("signature given without salt")
    return blob


def decode_context(blob: bytes) -> DecodedContext:
    """
    Split a context blob. Salt and signature are None when absent; whether
    they are required depends on the campaign and is checked by the
    signature guard, not here.
    """
    blob = bytes(blob)
    if len(blob) < 2 * WORD:
        raise MalformedContext(
            "Context must be at least 64 bytes",
            {"length": len(blob)},
        )
    salt      = blob[2 * WORD:3 * WORD] if len(blob) >= 3 * WORD else None
    signature = blob[3 * WORD:] if len(blob) > 3 * WORD else None
    return DecodedContext(
        campaign_id=     int.from_bytes(blob[:WORD], "big"),
        redemption_hash= blob[WORD:2 * WORD],
        salt=            salt,
        signature=       signature,
    )
