"""
tests/test_core.py

Core building blocks: context codec, journal, models, canonical digests.
"""

import pytest

from redeemables.core.canonical import canonical_hash
from redeemables.core.context import decode_context, encode_context
from redeemables.core.crypto import Ed25519KeyManager
from redeemables.core.exceptions import MalformedContext, RedeemablesError
from redeemables.core.journal import Journal
from redeemables.core.models import (
    CampaignParams,
    ItemType,
    SpentItem,
    is_null_address,
    same_address,
)
from redeemables.core.time import FixedClock

from helpers.builders import campaign_params


class TestContextCodec:

    def test_unsigned_layout(self):
        blob = encode_context(1, b"\x22" * 32)
        assert len(blob) == 64
        assert blob[:32] == (1).to_bytes(32, "big")
        decoded = decode_context(blob)
        assert decoded.campaign_id == 1
        assert decoded.redemption_hash == b"\x22" * 32
        assert decoded.salt is None
        assert decoded.signature is None

    def test_signed_layout(self):
        blob = encode_context(3, b"\x00" * 32, b"\x11" * 32, b"\x99" * 64)
        assert len(blob) == 96 + 64
        decoded = decode_context(blob)
        assert decoded.salt == b"\x11" * 32
        assert decoded.signature == b"\x99" * 64

    def test_salt_without_signature(self):
        decoded = decode_context(encode_context(3, b"\x00" * 32, b"\x11" * 32))
        assert decoded.salt == b"\x11" * 32
        assert decoded.signature is None

    @pytest.mark.parametrize("length", [0, 31, 63])
    def test_short_blob(self, length):
        with pytest.raises(MalformedContext):
            decode_context(b"\x00" * length)

    def test_signature_requires_salt(self):
        with pytest.raises(ValueError):
            encode_context(1, b"\x00" * 32, None, b"\x01" * 64)

    def test_hash_must_be_a_word(self):
        with pytest.raises(ValueError):
            encode_context(1, b"\x00" * 31)


class TestJournal:

    def test_rollback_in_reverse_order(self):
        journal, log = Journal(), []
        with pytest.raises(RuntimeError):
            with journal.atomic():
                journal.record_undo(lambda: log.append("first"))
                journal.record_undo(lambda: log.append("second"))
                raise RuntimeError("boom")
        assert log == ["second", "first"]

    def test_commit_runs_callbacks_once_outermost_finishes(self):
        journal, log = Journal(), []
        with journal.atomic():
            with journal.atomic():
                journal.on_commit(lambda: log.append("inner"))
            assert log == []
        assert log == ["inner"]

    def test_outer_failure_undoes_committed_inner_block(self):
        journal, log = Journal(), []
        with pytest.raises(RuntimeError):
            with journal.atomic():
                with journal.atomic():
                    journal.record_undo(lambda: log.append("undo"))
                    journal.on_commit(lambda: log.append("notify"))
                raise RuntimeError("late failure")
        assert log == ["undo"]

    def test_inner_failure_caught_by_outer(self):
        journal, log = Journal(), []
        with journal.atomic():
            journal.record_undo(lambda: log.append("outer"))
            with pytest.raises(RuntimeError):
                with journal.atomic():
                    journal.record_undo(lambda: log.append("inner"))
                    raise RuntimeError
        assert log == ["inner"]

    def test_failing_commit_callback_undoes_block(self):
        journal, log = Journal(), []

        def broken():
            raise RuntimeError("sink down")

        with pytest.raises(RuntimeError, match="sink down"):
            with journal.atomic():
                with journal.atomic():
                    journal.record_undo(lambda: log.append("undo"))
                    journal.on_commit(broken)
                journal.on_commit(lambda: log.append("never delivered"))
        assert log == ["undo"]
        assert not journal.active

    def test_outside_block(self):
        journal, log = Journal(), []
        journal.record_undo(lambda: log.append("ignored"))
        journal.on_commit(lambda: log.append("now"))
        assert log == ["now"]
        assert not journal.active


class TestModels:

    def test_criteria_types_order_above_concrete(self):
        assert ItemType.NON_FUNGIBLE_WITH_CRITERIA > ItemType.SEMI_FUNGIBLE
        assert ItemType.SEMI_FUNGIBLE_WITH_CRITERIA.has_criteria()
        assert not ItemType.SEMI_FUNGIBLE.has_criteria()
        assert ItemType.NON_FUNGIBLE_WITH_CRITERIA.without_criteria() == ItemType.NON_FUNGIBLE
        assert ItemType.FUNGIBLE.without_criteria() == ItemType.FUNGIBLE

    def test_params_round_trip(self):
        params = campaign_params(signer="ab" * 32)
        assert CampaignParams.from_dict(params.to_dict()) == params

    def test_params_from_yaml_style_dict(self):
        params = CampaignParams.from_dict({
            "offer": [{"item_type": "NON_FUNGIBLE_WITH_CRITERIA", "token": "0x1", "amount": 1}],
            "consideration": [{
                "item_type": "non_fungible", "token": "0x2",
                "identifier_or_criteria": "0x0a", "amount": 2, "recipient": "0x3",
            }],
            "start_time": 1, "end_time": 2, "max_total_redemptions": 5, "manager": "0x4",
        })
        assert params.consideration[0].item_type == ItemType.NON_FUNGIBLE
        assert params.consideration[0].identifier_or_criteria == 10
        assert params.consideration[0].end_amount == 2
        assert params.signer is None

    def test_unknown_item_type_name(self):
        with pytest.raises(ValueError):
            SpentItem.from_dict({"item_type": "SHINY", "token": "0x1"})

    def test_null_addresses(self):
        assert is_null_address(None)
        assert is_null_address("")
        assert is_null_address("0x" + "0" * 40)
        assert not is_null_address("0x" + "0" * 39 + "1")
        assert same_address("0xABC", "0xabc")
        assert same_address(None, "")


class TestCanonical:

    def test_key_order_independent(self):
        assert canonical_hash({"a": 1, "b": [1, 2]}) == canonical_hash({"b": [1, 2], "a": 1})

    def test_error_rendering(self):
        err = RedeemablesError("nope", {"campaign_id": 3})
        assert str(err) == "nope (campaign_id=3)"
        assert err.code == "RedeemablesError"


class TestKeysAndClock:

    def test_seed_gives_stable_signer(self):
        a = Ed25519KeyManager.from_private_bytes(b"\x01" * 32)
        b = Ed25519KeyManager.from_private_bytes(b"\x01" * 32)
        assert a.signer_address == b.signer_address
        assert len(a.signer_address) == 64

    def test_seed_length(self):
        with pytest.raises(ValueError):
            Ed25519KeyManager.from_private_bytes(b"\x01" * 31)

    def test_verify_never_raises(self):
        key = Ed25519KeyManager.generate()
        sig = key.sign(b"data")
        assert Ed25519KeyManager.verify_detached(b"data", sig, key.signer_address)
        assert not Ed25519KeyManager.verify_detached(b"other", sig, key.signer_address)
        assert not Ed25519KeyManager.verify_detached(b"data", sig[:10], key.signer_address)
        assert not Ed25519KeyManager.verify_detached(b"data", sig, "zz" * 32)

    def test_fixed_clock(self):
        clock = FixedClock(100)
        clock.advance(5)
        assert clock() == 105
