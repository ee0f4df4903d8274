"""
Address → contract lookup.

The directory is the in-process stand-in for "calling a contract at an
address": the mint dispatcher resolves offer tokens through it, and
tokens resolve transfer recipients through it to find receiver hooks.
All contracts registered in one directory share its journal, so a single
atomic block covers every state change they make.
"""

import threading
from typing import Any, Dict, Optional

from redeemables.core.journal import Journal


class Directory:

    def __init__(self, journal: Optional[Journal] = None) -> None:
        self.journal = journal or Journal()
        self._contracts: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, contract: Any) -> Any:
        """Register an object exposing `.address`. Returns it."""
        key = contract.address.lower()
        with self._lock:
            if key in self._contracts and self._contracts[key] is not contract:
                raise ValueError(f"Address already registered: {contract.address}")
            self._contracts[key] = contract
        return contract

    def resolve(self, address: Optional[str]) -> Optional[Any]:
        if not address:
            return None
        with self._lock:
            return self._contracts.get(address.lower())

    def __contains__(self, address: str) -> bool:
        return self.resolve(address) is not None
