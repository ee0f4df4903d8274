"""
redeemables/__init__.py

Redeemables: campaign-driven token redemption.

A campaign says "surrender these items, receive those". The offerer
evaluates proposed exchanges, either as a side-effect free preview or as
an all-or-nothing apply that bumps the campaign counter, consumes the
signer digest, emits a Redemption event and mints the offer items.
"""

__version__ = "0.3.0"

from redeemables.config import OffererConfig, load_campaign_file, load_campaign_params
from redeemables.core.context import decode_context, encode_context
from redeemables.core.crypto import Ed25519KeyManager
from redeemables.core.emitter import EventEmitter, EventRecorder, JsonlEventSink
from redeemables.core.events import CampaignUpdated, Redemption
from redeemables.core.exceptions import ConfigError, RedeemablesError, RedemptionError
from redeemables.core.journal import Journal
from redeemables.core.models import (
    CampaignParams,
    ConsiderationItem,
    EvaluationMode,
    ItemType,
    OfferItem,
    ReceivedItem,
    RedemptionOutcome,
    RedemptionRequest,
    SpentItem,
)
from redeemables.offerer import RATIFY_ORDER_MAGIC, RedeemablesOfferer
from redeemables.settlement.protocol import SettlementProtocol
from redeemables.tokens.directory import Directory

__all__ = [
    # Entry points
    "RedeemablesOfferer",
    "SettlementProtocol",
    "Directory",
    "OffererConfig",
    # Data model
    "CampaignParams",
    "ConsiderationItem",
    "EvaluationMode",
    "ItemType",
    "OfferItem",
    "ReceivedItem",
    "RedemptionOutcome",
    "RedemptionRequest",
    "SpentItem",
    # Events
    "CampaignUpdated",
    "Redemption",
    "EventEmitter",
    "EventRecorder",
    "JsonlEventSink",
    # Errors
    "RedeemablesError",
    "ConfigError",
    "RedemptionError",
    # Helpers
    "Ed25519KeyManager",
    "Journal",
    "decode_context",
    "encode_context",
    "load_campaign_file",
    "load_campaign_params",
    # Constants
    "RATIFY_ORDER_MAGIC",
]
