"""Redeemables adapters for transfer-triggered redemption."""

from redeemables.adapters.receivers import TransferReceiver, find_consideration_recipient

__all__ = [
    "TransferReceiver",
    "find_consideration_recipient",
]
