"""
RedeemablesOfferer — the public surface.

Wires one journal through the store, signature guard, event emitter and
every token in the directory, then exposes the entry points:

    update_campaign / update_campaign_uri / get_campaign
    generate_order  (APPLY)  / preview_order (SIMULATE) / ratify_order
    on_erc721_received / on_erc1155_received / on_erc1155_batch_received

Execution model:
    - Every entry point runs under the offerer's re-entrant lock.
    - A campaign being evaluated cannot be evaluated again until the first
      call finishes (ReentrantRedemption), which blocks a token from
      re-triggering a redemption from inside its own transfer or mint.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Sequence, Set, Tuple

from redeemables.adapters.receivers import TransferReceiver
from redeemables.config import OffererConfig
from redeemables.core.context import decode_context
from redeemables.core.emitter import EventEmitter, JsonlEventSink
from redeemables.core.exceptions import ReentrantRedemption
from redeemables.core.models import (
    CampaignParams,
    EvaluationMode,
    RedemptionOutcome,
    RedemptionRequest,
    SpentItem,
)
from redeemables.core.time import Clock, system_clock
from redeemables.redemption.dispatcher import MintDispatcher
from redeemables.redemption.signature import SignatureDomain, SignatureGuard
from redeemables.redemption.validator import RedemptionValidator
from redeemables.registry.registry import CampaignRegistry
from redeemables.registry.store import CampaignStore
from redeemables.tokens.directory import Directory


logger = logging.getLogger(__name__)

RATIFY_ORDER_MAGIC = bytes.fromhex("f4dd92ce")


class RedeemablesOfferer:

    def __init__(
        self,
        config:    OffererConfig,
        directory: Directory,
        clock:     Clock = system_clock,
    ) -> None:
        self.config    = config
        self.address   = config.address
        self.directory = directory
        journal        = directory.journal

        self.store   = CampaignStore(journal)
        self.emitter = EventEmitter(journal)
        if config.event_log is not None:
            self.emitter.subscribe(JsonlEventSink(config.event_log))

        self.registry = CampaignRegistry(self.store, self.emitter)
        self.guard    = SignatureGuard(
            SignatureDomain(config.domain_name, config.domain_version, config.address),
            journal,
        )
        self.validator = RedemptionValidator(
            store=      self.store,
            guard=      self.guard,
            dispatcher= MintDispatcher(directory, config.address),
            emitter=    self.emitter,
            settlement= config.settlement,
            clock=      clock,
        )
        self.receiver = TransferReceiver(self)

        self.lock   = threading.RLock()
        self._active: Set[int] = set()
        directory.register(self)

    # ── Campaign management ───────────────────────────────────

    def update_campaign(
        self, caller: str, campaign_id: int, params: CampaignParams, uri: str = "",
    ) -> int:
        with self.lock:
            return self.registry.upsert(caller, campaign_id, params, uri)

    def update_campaign_uri(self, caller: str, campaign_id: int, uri: str) -> None:
        with self.lock:
            self.registry.set_uri(caller, campaign_id, uri)

    def get_campaign(self, campaign_id: int) -> Tuple[CampaignParams, str, int]:
        with self.lock:
            return self.registry.get(campaign_id)

    # ── Order generation (settlement protocol) ────────────────

    def generate_order(
        self,
        caller:           str,
        fulfiller:        str,
        minimum_received: Sequence[SpentItem],
        maximum_spent:    Sequence[SpentItem],
        context:          bytes,
    ) -> RedemptionOutcome:
        request = self.build_request(caller, fulfiller, minimum_received, maximum_spent, context)
        return self.redeem(request, EvaluationMode.APPLY)

    def preview_order(
        self,
        caller:           str,
        fulfiller:        str,
        minimum_received: Sequence[SpentItem],
        maximum_spent:    Sequence[SpentItem],
        context:          bytes,
    ) -> RedemptionOutcome:
        request = self.build_request(caller, fulfiller, minimum_received, maximum_spent, context)
        return self.redeem(request, EvaluationMode.SIMULATE)

    def ratify_order(self, *args, **kwargs) -> bytes:
        """Post-settlement acknowledgement. No validation."""
        return RATIFY_ORDER_MAGIC

    # ── Transfer-triggered redemption ─────────────────────────

    def on_erc721_received(self, caller, operator, from_, token_id, data=b"") -> bytes:
        return self.receiver.on_erc721_received(caller, operator, from_, token_id, data)

    def on_erc1155_received(self, caller, operator, from_, token_id, value, data=b"") -> bytes:
        return self.receiver.on_erc1155_received(caller, operator, from_, token_id, value, data)

    def on_erc1155_batch_received(self, caller, operator, from_, token_ids, values, data=b"") -> bytes:
        return self.receiver.on_erc1155_batch_received(
            caller, operator, from_, token_ids, values, data,
        )

    # ── Shared path ───────────────────────────────────────────

    @staticmethod
    def build_request(
        caller:           str,
        fulfiller:        str,
        minimum_received: Sequence[SpentItem],
        maximum_spent:    Sequence[SpentItem],
        context:          bytes,
    ) -> RedemptionRequest:
        decoded = decode_context(context)
        return RedemptionRequest(
            caller=           caller,
            fulfiller=        fulfiller,
            minimum_received= tuple(minimum_received),
            maximum_spent=    tuple(maximum_spent),
            campaign_id=      decoded.campaign_id,
            redemption_hash=  decoded.redemption_hash,
            salt=             decoded.salt,
            signature=        decoded.signature,
        )

    def redeem(self, request: RedemptionRequest, mode: EvaluationMode) -> RedemptionOutcome:
        with self.lock, self.campaign_guard(request.campaign_id):
            return self.validator.evaluate(request, mode)

    @contextmanager
    def campaign_guard(self, campaign_id: int) -> Iterator[None]:
        """Reject nested evaluation of a campaign already in flight."""
        with self.lock:
            if campaign_id in self._active:
                raise ReentrantRedemption(
                    "Campaign re-entered during redemption",
                    {"campaign_id": campaign_id},
                )
            self._active.add(campaign_id)
        try:
            yield
        finally:
            with self.lock:
                self._active.discard(campaign_id)
