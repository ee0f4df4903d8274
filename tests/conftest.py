"""
tests/conftest.py

Shared world for the suite: one directory (and so one journal), one
offerer pinned to a fixed clock, a burnable ERC-721, a reward ERC-721 the
offerer may mint from, and an ERC-1155.
"""

import pytest

from redeemables.config import OffererConfig
from redeemables.core.crypto import Ed25519KeyManager
from redeemables.core.emitter import EventRecorder
from redeemables.core.time import FixedClock
from redeemables.offerer import RedeemablesOfferer
from redeemables.settlement.protocol import SettlementProtocol
from redeemables.tokens.directory import Directory
from redeemables.tokens.erc721 import RedeemableERC721
from redeemables.tokens.erc1155 import RedeemableERC1155

from helpers.builders import (
    BURN_TOKEN,
    DEPLOYER,
    MANAGER,
    NOW,
    OFFERER,
    REWARD_TOKEN,
    SETTLEMENT,
    SFT_TOKEN,
    campaign_params,
)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def directory():
    return Directory()


@pytest.fixture
def config():
    return OffererConfig(address=OFFERER, settlement=SETTLEMENT)


@pytest.fixture
def offerer(config, directory, clock):
    return RedeemablesOfferer(config, directory, clock)


@pytest.fixture
def recorder(offerer):
    """Records every event the offerer delivers."""
    return offerer.emitter.subscribe(EventRecorder())


@pytest.fixture
def burn_token(directory):
    return RedeemableERC721(BURN_TOKEN, directory, owner=DEPLOYER, name="Burn")


@pytest.fixture
def reward_token(directory):
    token = RedeemableERC721(REWARD_TOKEN, directory, owner=DEPLOYER, name="Reward")
    token.set_redeemables_contract(DEPLOYER, OFFERER)
    return token


@pytest.fixture
def sft_token(directory):
    token = RedeemableERC1155(SFT_TOKEN, directory, owner=DEPLOYER, name="Shards")
    token.set_redeemables_contract(DEPLOYER, OFFERER)
    return token


@pytest.fixture
def settlement(directory):
    return SettlementProtocol(SETTLEMENT, directory)


@pytest.fixture
def signer_key():
    return Ed25519KeyManager.generate()


@pytest.fixture
def create_campaign(offerer, reward_token):
    """create_campaign(**overrides) → new campaign id, created by MANAGER."""
    def _create(uri="ipfs://campaign", **overrides):
        return offerer.update_campaign(MANAGER, 0, campaign_params(**overrides), uri)
    return _create
