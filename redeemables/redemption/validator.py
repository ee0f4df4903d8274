"""
Redemption admission control.

ONE evaluation path, two modes:

    SIMULATE — decide and derive (offer, consideration). Touch nothing.
    APPLY    — same decision, same derivation, then atomically:
                 1. total_redemptions += |maximum_spent|
                 2. consume the signer digest (if any)
                 3. emit Redemption (delivered on commit)
                 4. mint every offer item to the fulfiller

Decision procedure:
    Every predicate in PREDICATES is evaluated, independently and without
    side effects, producing an optional failure. The signer authorization
    (if configured) is checked on its own. Then exactly one outcome is
    selected:

        signer failure, if any
        else the first present failure in PREDICATES order:
            1. caller            → InvalidCaller
            2. time window       → NotActive
            3. redemption cap    → MaxRedemptionsReached / MaxTotalRedemptionsReached
            4. consideration len → InvalidConsiderationLength
            5. consideration items → InvalidConsiderationItem
            6. offer length      → InvalidOfferLength
        else admissible.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from redeemables.core.emitter import EventEmitter
from redeemables.core.events import Redemption
from redeemables.core.exceptions import (
    InvalidCaller,
    InvalidCampaignId,
    InvalidConsiderationItem,
    InvalidConsiderationLength,
    InvalidOfferLength,
    MaxRedemptionsReached,
    MaxTotalRedemptionsReached,
    NotActive,
    RedemptionError,
)
from redeemables.core.models import (
    Campaign,
    CampaignParams,
    ConsiderationItem,
    EvaluationMode,
    ItemType,
    ReceivedItem,
    RedemptionOutcome,
    RedemptionRequest,
    SpentItem,
    is_null_address,
    same_address,
)
from redeemables.core.time import Clock, system_clock
from redeemables.redemption.dispatcher import MintDispatcher
from redeemables.redemption.signature import SignatureGuard
from redeemables.registry.store import CampaignStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Environment:
    """Everything a predicate may look at besides request and campaign."""
    settlement: str
    now:        int


Predicate = Callable[[RedemptionRequest, Campaign, Environment], Optional[RedemptionError]]


# ─────────────────────────────────────────────────────────────
# Predicates — pure, in priority order
# ─────────────────────────────────────────────────────────────

def check_caller(request: RedemptionRequest, campaign: Campaign, env: Environment):
    if same_address(request.caller, env.settlement):
        return None
    consideration = campaign.params.consideration
    if consideration and same_address(request.caller, consideration[0].token):
        return None
    return InvalidCaller("Caller is not trusted", {"caller": request.caller})


def check_active(request: RedemptionRequest, campaign: Campaign, env: Environment):
    params = campaign.params
    if params.start_time <= env.now < params.end_time:
        return None
    return NotActive(
        "Campaign is not active",
        {"now": env.now, "start_time": params.start_time, "end_time": params.end_time},
    )


def check_redemption_cap(request: RedemptionRequest, campaign: Campaign, env: Environment):
    requested = len(request.maximum_spent)
    cap       = campaign.params.max_total_redemptions
    if requested > cap:
        return MaxRedemptionsReached(
            "Request exceeds the campaign redemption cap",
            {"requested": requested, "max": cap},
        )
    if campaign.total_redemptions + requested > cap:
        return MaxTotalRedemptionsReached(
            "Campaign redemption cap reached",
            {"total": campaign.total_redemptions, "requested": requested, "max": cap},
        )
    return None


def check_consideration_length(request: RedemptionRequest, campaign: Campaign, env: Environment):
    got, want = len(request.maximum_spent), len(campaign.params.consideration)
    if got == want:
        return None
    return InvalidConsiderationLength(
        "Spent items do not match consideration length",
        {"got": got, "want": want},
    )


def check_consideration_items(request: RedemptionRequest, campaign: Campaign, env: Environment):
    # Only pairs that exist are compared; a length mismatch is reported above.
    # Membership in a committed criteria set is proven by the settlement
    # protocol before it calls in; no other caller carries a proof.
    proven = same_address(request.caller, env.settlement)
    for index, (spent, wanted) in enumerate(zip(request.maximum_spent, campaign.params.consideration)):
        if not is_compatible(spent, wanted):
            return InvalidConsiderationItem(
                "Spent item does not satisfy consideration",
                {"index": index, "got": spent.token, "want": wanted.token},
            )
        if wanted.requires_proof() and not proven:
            return InvalidConsiderationItem(
                "Criteria membership requires a settlement proof",
                {"index": index, "identifier": spent.identifier},
            )
    return None


def check_offer_length(request: RedemptionRequest, campaign: Campaign, env: Environment):
    got, have = len(request.minimum_received), len(campaign.params.offer)
    if got <= have:
        return None
    return InvalidOfferLength(
        "Minimum received exceeds campaign offer",
        {"minimum_received": got, "offer": have},
    )


PREDICATES: Tuple[Predicate, ...] = (
    check_caller,
    check_active,
    check_redemption_cap,
    check_consideration_length,
    check_consideration_items,
    check_offer_length,
)


def is_compatible(spent: SpentItem, wanted: ConsiderationItem) -> bool:
    """
    Token must match. A criteria descriptor accepts only its concrete
    counterpart type; an unresolved (criteria-typed) spent item never
    matches. A concrete token descriptor also pins the identifier.
    """
    if not same_address(spent.token, wanted.token):
        return False
    if spent.item_type.has_criteria():
        return False
    if spent.item_type != wanted.item_type.without_criteria():
        return False
    if not wanted.item_type.has_criteria() and wanted.item_type in (
        ItemType.NON_FUNGIBLE, ItemType.SEMI_FUNGIBLE,
    ):
        return spent.identifier == wanted.identifier_or_criteria
    return True


def collect_failures(
    request:    RedemptionRequest,
    campaign:   Campaign,
    env:        Environment,
    predicates: Sequence[Predicate] = PREDICATES,
) -> List[Optional[RedemptionError]]:
    """Evaluate every predicate. No short-circuit."""
    return [predicate(request, campaign, env) for predicate in predicates]


def select_failure(failures: Sequence[Optional[RedemptionError]]) -> Optional[RedemptionError]:
    """Highest-priority present failure, or None when admissible."""
    for failure in failures:
        if failure is not None:
            return failure
    return None


def derive_outcome(request: RedemptionRequest, params: CampaignParams) -> RedemptionOutcome:
    """
    offer[i]         ← params.offer[i], identifier kept symbolic
    consideration[i] ← params.consideration[i], identifier realized from
                       maximum_spent[i] when the descriptor is criteria
    """
    offer = tuple(
        SpentItem(
            item_type=  item.item_type,
            token=      item.token,
            identifier= item.identifier_or_criteria,
            amount=     item.start_amount,
        )
        for item in params.offer
    )
    consideration = tuple(
        ReceivedItem(
            item_type=  item.item_type,
            token=      item.token,
            identifier= (
                spent.identifier if item.item_type.has_criteria()
                else item.identifier_or_criteria
            ),
            amount=     item.start_amount,
            recipient=  item.recipient,
        )
        for item, spent in zip(params.consideration, request.maximum_spent)
    )
    return RedemptionOutcome(offer=offer, consideration=consideration)


# ─────────────────────────────────────────────────────────────
# Validator
# ─────────────────────────────────────────────────────────────

class RedemptionValidator:
    """
    Owns the evaluate() path. Stateless apart from its collaborators;
    callers serialize access (the offerer holds its lock around every call).
    """

    def __init__(
        self,
        store:      CampaignStore,
        guard:      SignatureGuard,
        dispatcher: MintDispatcher,
        emitter:    EventEmitter,
        settlement: str,
        clock:      Clock = system_clock,
    ) -> None:
        self.store      = store
        self.guard      = guard
        self.dispatcher = dispatcher
        self.emitter    = emitter
        self.settlement = settlement
        self.clock      = clock

    def evaluate(self, request: RedemptionRequest, mode: EvaluationMode) -> RedemptionOutcome:
        """
        Decide, derive and (in APPLY mode) commit one redemption.

        Raises:
            InvalidCampaignId — the context names a campaign never issued
            RedemptionError   — the selected failure (see module docstring)
        """
        campaign = self.store.get(request.campaign_id)
        if campaign is None:
            raise InvalidCampaignId(
                "Campaign does not exist",
                {"campaign_id": request.campaign_id},
            )

        env      = Environment(settlement=self.settlement, now=self.clock())
        failures = collect_failures(request, campaign, env)

        digest: Optional[bytes] = None
        signer_failure: Optional[RedemptionError] = None
        if not is_null_address(campaign.params.signer):
            try:
                digest = self.guard.check(
                    campaign.params.signer,
                    campaign.campaign_id,
                    request.fulfiller,
                    request.maximum_spent,
                    request.redemption_hash,
                    request.salt,
                    request.signature,
                )
            except RedemptionError as exc:
                signer_failure = exc

        failure = signer_failure or select_failure(failures)
        if failure is not None:
            logger.warning(
                "Campaign %d: redemption rejected (%s) [%s]",
                campaign.campaign_id,
                failure.code,
                ", ".join(f.code for f in failures if f is not None) or "signer",
            )
            raise failure

        outcome = derive_outcome(request, campaign.params)
        if mode is EvaluationMode.APPLY:
            self._apply(request, campaign, outcome, digest)
        else:
            logger.debug("Campaign %d: redemption previewed", campaign.campaign_id)
        return outcome

    def _apply(
        self,
        request:  RedemptionRequest,
        campaign: Campaign,
        outcome:  RedemptionOutcome,
        digest:   Optional[bytes],
    ) -> None:
        with self.store.journal.atomic():
            total = self.store.add_redemptions(campaign.campaign_id, len(request.maximum_spent))
            if digest is not None:
                self.guard.consume(digest)
            self.emitter.emit(Redemption(
                fulfiller=       request.fulfiller,
                campaign_id=     campaign.campaign_id,
                spent=           request.maximum_spent,
                received=        outcome.offer,
                redemption_hash= request.redemption_hash,
            ))
            self.dispatcher.dispatch(
                campaign.campaign_id,
                request.fulfiller,
                outcome.offer,
                request.context(),
            )
        logger.info(
            "Campaign %d: %s redeemed %d item(s), total %d",
            campaign.campaign_id, request.fulfiller, len(request.maximum_spent), total,
        )
