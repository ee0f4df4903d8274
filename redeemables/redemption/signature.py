"""
Signer authorization and replay protection.

For campaigns with a `signer`, every redemption must carry an Ed25519
signature by that signer over the redemption digest:

    digest = SHA-256(JCS({
        "domain":          {"name", "version", "offerer"},
        "campaign_id":     int,
        "fulfiller":       str,
        "maximum_spent":   [SpentItem.to_dict(), ...],
        "redemption_hash": hex,
        "salt":            hex,
    }))

The evaluation mode is NOT part of the digest: a preview and the real
redemption sign the same bytes.

Replay rule: a digest is consumed only by an APPLY-mode evaluation, and
only as part of that evaluation's atomic effects. SIMULATE never consumes,
but it does report DigestAlreadyUsed for a digest that is already spent,
so a preview predicts the real outcome.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Set

from redeemables.core.canonical import canonical_digest
from redeemables.core.crypto import Ed25519KeyManager
from redeemables.core.exceptions import DigestAlreadyUsed, InvalidSignature
from redeemables.core.journal import Journal
from redeemables.core.models import SpentItem


@dataclass(frozen=True)
class SignatureDomain:
    """Binds signatures to one offerer deployment."""
    name:    str = "Redeemables"
    version: str = "1.0"
    offerer: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "version": self.version, "offerer": self.offerer}


def redemption_digest(
    domain:          SignatureDomain,
    campaign_id:     int,
    fulfiller:       str,
    maximum_spent:   Sequence[SpentItem],
    redemption_hash: bytes,
    salt:            bytes,
) -> bytes:
    """The 32 bytes a signer signs. Shared by the guard and the `sign` CLI."""
    return canonical_digest({
        "domain":          domain.to_dict(),
        "campaign_id":     campaign_id,
        "fulfiller":       fulfiller.lower(),
        "maximum_spent":   [item.to_dict() for item in maximum_spent],
        "redemption_hash": bytes(redemption_hash).hex(),
        "salt":            bytes(salt).hex(),
    })


def sign_redemption(
    key:             Ed25519KeyManager,
    domain:          SignatureDomain,
    campaign_id:     int,
    fulfiller:       str,
    maximum_spent:   Sequence[SpentItem],
    redemption_hash: bytes,
    salt:            bytes,
) -> bytes:
    """Off-platform side: produce the signature the guard will accept."""
    return key.sign(redemption_digest(
        domain, campaign_id, fulfiller, maximum_spent, redemption_hash, salt,
    ))


class SignatureGuard:
    """Verifies signer authorizations and tracks consumed digests."""

    def __init__(self, domain: SignatureDomain, journal: Optional[Journal] = None) -> None:
        self.domain   = domain
        self._journal = journal or Journal()
        self._used:   Set[bytes] = set()
        self._lock    = threading.Lock()

    def check(
        self,
        signer:          str,
        campaign_id:     int,
        fulfiller:       str,
        maximum_spent:   Sequence[SpentItem],
        redemption_hash: bytes,
        salt:            Optional[bytes],
        signature:       Optional[bytes],
    ) -> bytes:
        """
        Side-effect free verification.

        Returns:
            The digest, for a later consume().

        Raises:
            InvalidSignature   — salt/signature missing, or signature invalid
            DigestAlreadyUsed  — digest consumed by an earlier redemption
        """
        if salt is None or not signature:
            raise InvalidSignature(
                "Campaign requires a signer authorization",
                {"campaign_id": campaign_id},
            )
        digest = redemption_digest(
            self.domain, campaign_id, fulfiller, maximum_spent, redemption_hash, salt,
        )
        if not Ed25519KeyManager.verify_detached(digest, signature, signer):
            raise InvalidSignature(
                "Signature does not match campaign signer",
                {"campaign_id": campaign_id, "signer": signer},
            )
        if self.is_used(digest):
            raise DigestAlreadyUsed(
                "Redemption digest already used",
                {"digest": digest.hex()},
            )
        return digest

    def consume(self, digest: bytes) -> None:
        """Mark digest used. Undone if the enclosing journal block aborts."""
        with self._lock:
            if digest in self._used:
                raise DigestAlreadyUsed(
                    "Redemption digest already used",
                    {"digest": digest.hex()},
                )
            self._used.add(digest)
        self._journal.record_undo(lambda: self._release(digest))

    def is_used(self, digest: bytes) -> bool:
        with self._lock:
            return digest in self._used

    def _release(self, digest: bytes) -> None:
        with self._lock:
            self._used.discard(digest)
