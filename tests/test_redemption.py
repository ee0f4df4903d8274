"""
tests/test_redemption.py

The redemption engine, driven through generate_order / preview_order.

  DECISION
    failure priority: caller > time window > cap > consideration length
                      > consideration items > offer length
    signer failures surface ahead of every predicate failure
    unknown campaign ids are rejected before any predicate

  DUAL MODE
    preview and generate return identical outcomes
    only generate bumps the counter, emits and mints

  ATOMICITY
    a failing mint leaves counter, digests, events and balances untouched
    a campaign cannot be re-entered from inside its own redemption
"""

import pytest

from redeemables.core.crypto import Ed25519KeyManager
from redeemables.core.events import Redemption
from redeemables.core.exceptions import (
    DigestAlreadyUsed,
    InvalidCaller,
    InvalidCampaignId,
    InvalidConsiderationItem,
    InvalidConsiderationLength,
    InvalidOfferLength,
    InvalidSignature,
    MalformedContext,
    MaxRedemptionsReached,
    MaxTotalRedemptionsReached,
    MintDispatchError,
    NotActive,
    ReentrantRedemption,
    TokenError,
)
from redeemables.core.models import ItemType, SpentItem
from redeemables.offerer import RATIFY_ORDER_MAGIC
from redeemables.redemption.signature import redemption_digest
from redeemables.tokens.traits import TRAIT_REDEEMED_CAMPAIGN

from helpers.builders import (
    BURN_ADDRESS,
    BURN_TOKEN,
    DEPLOYER,
    END,
    FULFILLER,
    OTHER,
    REWARD_TOKEN,
    SETTLEMENT,
    START,
    addr,
    consideration_item,
    context,
    offer_item,
    signed_context,
    spent,
)
from helpers.hostile import FailingMinter, ReentrantMinter


def generate(offerer, cid, items, caller=SETTLEMENT, minimum=(), ctx=None):
    return offerer.generate_order(caller, FULFILLER, minimum, items, ctx or context(cid))


def preview(offerer, cid, items, caller=SETTLEMENT, minimum=(), ctx=None):
    return offerer.preview_order(caller, FULFILLER, minimum, items, ctx or context(cid))


# ─────────────────────────────────────────────────────────────
# Admission
# ─────────────────────────────────────────────────────────────

class TestAdmission:

    def test_valid_redemption(self, offerer, create_campaign, reward_token):
        cid = create_campaign()
        offer, consideration = generate(offerer, cid, [spent(7)])

        assert offer == (SpentItem(ItemType.NON_FUNGIBLE_WITH_CRITERIA, REWARD_TOKEN, 0, 1),)
        assert len(consideration) == 1
        assert consideration[0].identifier == 7
        assert consideration[0].recipient == BURN_ADDRESS
        assert offerer.get_campaign(cid)[2] == 1
        assert reward_token.owner_of(1) == FULFILLER

    def test_token_contract_is_a_trusted_caller(self, offerer, create_campaign):
        cid = create_campaign()
        generate(offerer, cid, [spent(7)], caller=BURN_TOKEN)

    def test_unknown_campaign(self, offerer, create_campaign):
        create_campaign()
        with pytest.raises(InvalidCampaignId):
            generate(offerer, 9, [spent(7)])

    def test_short_context(self, offerer):
        with pytest.raises(MalformedContext):
            offerer.generate_order(SETTLEMENT, FULFILLER, (), [spent(1)], b"\x01" * 40)

    @pytest.mark.parametrize("now, admitted", [
        (START - 1, False),
        (START, True),
        (END - 1, True),
        (END, False),
    ])
    def test_time_window_is_half_open(self, offerer, create_campaign, clock, now, admitted):
        cid = create_campaign()
        clock.now = now
        if admitted:
            preview(offerer, cid, [spent(7)])
        else:
            with pytest.raises(NotActive):
                preview(offerer, cid, [spent(7)])

    def test_concrete_descriptor_pins_identifier(self, offerer, create_campaign):
        cid = create_campaign(consideration=[
            consideration_item(item_type=ItemType.NON_FUNGIBLE, criteria=7),
        ])
        generate(offerer, cid, [spent(7)])
        with pytest.raises(InvalidConsiderationItem):
            generate(offerer, cid, [spent(8)])

    def test_criteria_typed_spent_item_never_matches(self, offerer, create_campaign):
        cid = create_campaign()
        with pytest.raises(InvalidConsiderationItem):
            generate(offerer, cid, [spent(7, item_type=ItemType.NON_FUNGIBLE_WITH_CRITERIA)])

    def test_wrong_token(self, offerer, create_campaign):
        cid = create_campaign()
        with pytest.raises(InvalidConsiderationItem):
            generate(offerer, cid, [spent(7, token=addr("99"))])

    def test_ratify_is_unconditional(self, offerer):
        assert offerer.ratify_order() == RATIFY_ORDER_MAGIC
        assert offerer.ratify_order("anything", 1, b"") == RATIFY_ORDER_MAGIC


# ─────────────────────────────────────────────────────────────
# Priority
# ─────────────────────────────────────────────────────────────

class TestPriority:

    def test_caller_beats_everything(self, offerer, create_campaign, clock):
        cid = create_campaign(max_total_redemptions=0)
        clock.now = END + 10
        with pytest.raises(InvalidCaller):
            generate(offerer, cid, [spent(1), spent(2)], caller=OTHER, minimum=[spent(1)] * 3)

    def test_time_beats_cap(self, offerer, create_campaign, clock):
        cid = create_campaign(max_total_redemptions=0)
        clock.now = END + 10
        with pytest.raises(NotActive):
            generate(offerer, cid, [spent(1)])

    def test_cap_beats_length(self, offerer, create_campaign):
        cid = create_campaign(max_total_redemptions=1)
        with pytest.raises(MaxRedemptionsReached):
            generate(offerer, cid, [spent(1), spent(2)])

    def test_length_beats_item(self, offerer, create_campaign):
        cid = create_campaign()
        with pytest.raises(InvalidConsiderationLength):
            generate(offerer, cid, [spent(1, token=addr("99")), spent(2)])

    def test_item_beats_offer_length(self, offerer, create_campaign):
        cid = create_campaign()
        with pytest.raises(InvalidConsiderationItem):
            generate(offerer, cid, [spent(1, token=addr("99"))], minimum=[spent(1)] * 2)

    def test_offer_length(self, offerer, create_campaign):
        cid = create_campaign()
        with pytest.raises(InvalidOfferLength):
            generate(offerer, cid, [spent(1)], minimum=[spent(1)] * 2)

    def test_signer_failure_surfaces_first(self, offerer, create_campaign, signer_key, clock):
        cid = create_campaign(signer=signer_key.signer_address)
        clock.now = END + 10
        with pytest.raises(InvalidSignature):
            generate(offerer, cid, [spent(1)], caller=OTHER)

    def test_rejection_has_specific_code(self, offerer, create_campaign):
        cid = create_campaign()
        with pytest.raises(InvalidCaller) as exc_info:
            generate(offerer, cid, [spent(1)], caller=OTHER)
        assert exc_info.value.code == "InvalidCaller"
        assert exc_info.value.details["caller"] == OTHER


# ─────────────────────────────────────────────────────────────
# Dual mode
# ─────────────────────────────────────────────────────────────

class TestDualMode:

    def test_preview_matches_generate(self, offerer, create_campaign):
        cid = create_campaign()
        previewed = preview(offerer, cid, [spent(3)])
        generated = generate(offerer, cid, [spent(3)])
        assert previewed == generated
        assert previewed.to_dict() == generated.to_dict()

    def test_preview_has_no_effects(self, offerer, create_campaign, recorder, reward_token):
        cid = create_campaign()
        recorder.clear()
        for _ in range(5):
            preview(offerer, cid, [spent(3)])
        assert offerer.get_campaign(cid)[2] == 0
        assert recorder.events == []
        assert reward_token.balance_of(FULFILLER) == 0

    def test_generate_emits_redemption(self, offerer, create_campaign, recorder):
        cid = create_campaign()
        recorder.clear()
        h = b"\x42" * 32
        outcome = offerer.generate_order(SETTLEMENT, FULFILLER, (), [spent(3)], context(cid, h))

        (event,) = recorder.of_type(Redemption)
        assert event.fulfiller == FULFILLER
        assert event.campaign_id == cid
        assert event.spent == (spent(3),)
        assert event.received == outcome.offer
        assert event.redemption_hash == h

    def test_preview_still_reports_failures(self, offerer, create_campaign):
        cid = create_campaign(max_total_redemptions=1)
        generate(offerer, cid, [spent(1)])
        with pytest.raises(MaxTotalRedemptionsReached):
            preview(offerer, cid, [spent(2)])


# ─────────────────────────────────────────────────────────────
# Accounting
# ─────────────────────────────────────────────────────────────

class TestAccounting:

    def test_cap_two_then_reject(self, offerer, create_campaign):
        cid = create_campaign(max_total_redemptions=2)
        generate(offerer, cid, [spent(1)])
        generate(offerer, cid, [spent(2)])
        with pytest.raises(MaxTotalRedemptionsReached):
            generate(offerer, cid, [spent(3)])
        assert offerer.get_campaign(cid)[2] == 2

    def test_zero_cap_rejects_everything(self, offerer, create_campaign):
        cid = create_campaign(max_total_redemptions=0)
        with pytest.raises(MaxRedemptionsReached):
            generate(offerer, cid, [spent(1)])

    def test_multi_item_wildcard_mints_once_per_offer_item(
        self, offerer, create_campaign, reward_token,
    ):
        cid = create_campaign(
            consideration=[consideration_item(), consideration_item()],
            offer=[offer_item()],
        )
        offer, consideration = generate(offerer, cid, [spent(11), spent(12)])

        assert [c.identifier for c in consideration] == [11, 12]
        assert len(offer) == 1
        assert offerer.get_campaign(cid)[2] == 2
        assert reward_token.balance_of(FULFILLER) == 1

    def test_every_offer_item_is_minted(self, offerer, create_campaign, reward_token, sft_token):
        cid = create_campaign(offer=[
            offer_item(),
            offer_item(token=sft_token.address, item_type=ItemType.SEMI_FUNGIBLE, identifier=5, amount=3),
        ])
        generate(offerer, cid, [spent(1)])
        assert reward_token.balance_of(FULFILLER) == 1
        assert sft_token.balance_of(FULFILLER, 5) == 3

    def test_native_offer_items_are_skipped(self, offerer, create_campaign, reward_token):
        cid = create_campaign(offer=[
            offer_item(token=addr("00"), item_type=ItemType.NATIVE),
            offer_item(),
        ])
        generate(offerer, cid, [spent(1)])
        assert reward_token.balance_of(FULFILLER) == 1

    def test_minted_token_records_campaign(self, offerer, create_campaign, reward_token):
        cid = create_campaign()
        generate(offerer, cid, [spent(4)])
        assert reward_token.get_trait_value(1, TRAIT_REDEEMED_CAMPAIGN) == cid


# ─────────────────────────────────────────────────────────────
# Signer authorization
# ─────────────────────────────────────────────────────────────

class TestSignature:

    def test_signed_redemption(self, offerer, create_campaign, signer_key):
        cid = create_campaign(signer=signer_key.signer_address)
        items = [spent(1)]
        generate(offerer, cid, items, ctx=signed_context(signer_key, cid, items))

    def test_missing_signature(self, offerer, create_campaign, signer_key):
        cid = create_campaign(signer=signer_key.signer_address)
        with pytest.raises(InvalidSignature):
            generate(offerer, cid, [spent(1)])

    def test_wrong_signer(self, offerer, create_campaign, signer_key):
        cid = create_campaign(signer=signer_key.signer_address)
        items = [spent(1)]
        ctx = signed_context(Ed25519KeyManager.generate(), cid, items)
        with pytest.raises(InvalidSignature):
            generate(offerer, cid, items, ctx=ctx)

    def test_signature_binds_items(self, offerer, create_campaign, signer_key):
        cid = create_campaign(signer=signer_key.signer_address)
        ctx = signed_context(signer_key, cid, [spent(1)])
        with pytest.raises(InvalidSignature):
            generate(offerer, cid, [spent(2)], ctx=ctx)

    def test_replay_rejected_in_both_modes(self, offerer, create_campaign, signer_key):
        cid = create_campaign(signer=signer_key.signer_address)
        items = [spent(1)]
        ctx = signed_context(signer_key, cid, items)

        generate(offerer, cid, items, ctx=ctx)
        with pytest.raises(DigestAlreadyUsed):
            generate(offerer, cid, items, ctx=ctx)
        with pytest.raises(DigestAlreadyUsed):
            preview(offerer, cid, items, ctx=ctx)
        assert offerer.get_campaign(cid)[2] == 1

    def test_preview_never_consumes(self, offerer, create_campaign, signer_key):
        cid = create_campaign(signer=signer_key.signer_address)
        items = [spent(1)]
        ctx = signed_context(signer_key, cid, items)

        preview(offerer, cid, items, ctx=ctx)
        preview(offerer, cid, items, ctx=ctx)
        generate(offerer, cid, items, ctx=ctx)

    def test_rejected_redemption_does_not_consume(self, offerer, create_campaign, signer_key):
        cid = create_campaign(signer=signer_key.signer_address)
        items = [spent(1)]
        ctx = signed_context(signer_key, cid, items)
        with pytest.raises(InvalidOfferLength):
            generate(offerer, cid, items, ctx=ctx, minimum=[spent(1)] * 2)
        generate(offerer, cid, items, ctx=ctx)


# ─────────────────────────────────────────────────────────────
# Atomicity
# ─────────────────────────────────────────────────────────────

class TestAtomicity:

    def test_failed_mint_rolls_back_everything(
        self, offerer, create_campaign, directory, reward_token, recorder, signer_key,
    ):
        failing = FailingMinter(addr("fa"), directory)
        cid = create_campaign(
            offer=[offer_item(), offer_item(token=failing.address)],
            signer=signer_key.signer_address,
        )
        recorder.clear()
        items = [spent(1)]
        salt  = b"\x07" * 32
        ctx   = signed_context(signer_key, cid, items, salt=salt)

        with pytest.raises(TokenError):
            generate(offerer, cid, items, ctx=ctx)

        assert failing.calls == 1
        assert offerer.get_campaign(cid)[2] == 0
        assert recorder.events == []
        assert reward_token.balance_of(FULFILLER) == 0
        assert not reward_token.exists(1)
        digest = redemption_digest(
            offerer.guard.domain, cid, FULFILLER, items, b"\x00" * 32, salt,
        )
        assert not offerer.guard.is_used(digest)

    def test_unregistered_offer_token(self, offerer, create_campaign):
        cid = create_campaign(offer=[offer_item(token=addr("77"))])
        with pytest.raises(MintDispatchError):
            generate(offerer, cid, [spent(1)])
        assert offerer.get_campaign(cid)[2] == 0

    def test_offerer_not_allowed_to_mint(self, offerer, create_campaign, reward_token):
        reward_token.set_redeemables_contract(DEPLOYER, offerer.address, allowed=False)
        cid = create_campaign()
        with pytest.raises(TokenError):
            generate(offerer, cid, [spent(1)])
        assert offerer.get_campaign(cid)[2] == 0

    def test_reentrant_mint_is_rejected(self, offerer, create_campaign, directory, recorder):
        hostile = ReentrantMinter(addr("ee"), directory, offerer)
        cid = create_campaign(offer=[offer_item(token=hostile.address)])
        recorder.clear()

        with pytest.raises(ReentrantRedemption):
            generate(offerer, cid, [spent(1)])
        assert offerer.get_campaign(cid)[2] == 0
        assert recorder.events == []

    def test_other_campaigns_unaffected_by_guard(self, offerer, create_campaign):
        first = create_campaign()
        second = create_campaign()
        with offerer.campaign_guard(first):
            generate(offerer, second, [spent(1)])
            with pytest.raises(ReentrantRedemption):
                generate(offerer, first, [spent(2)])
