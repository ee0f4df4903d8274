"""
Redeemables Exception Hierarchy

All exceptions inherit from RedeemablesError for easy catching.
Every concrete error carries a stable `code` so off-platform tooling can
show the precise reason a call was rejected.
"""


class RedeemablesError(Exception):
    """Base exception for all Redeemables errors"""

    code = "RedeemablesError"

    def __init__(self, message: str = "", details: dict = None):
        message = message or self.code
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# ── Configuration ─────────────────────────────────────────────

class ConfigError(RedeemablesError):
    """Raised by the campaign registry. Never retried."""
    code = "ConfigError"


class NotManager(ConfigError):
    code = "NotManager"


class InvalidTime(ConfigError):
    code = "InvalidTime"


class NoConsiderationItems(ConfigError):
    code = "NoConsiderationItems"


class InvalidMaxTotalRedemptions(ConfigError):
    code = "InvalidMaxTotalRedemptions"


class ZeroRecipient(ConfigError):
    """A consideration recipient is the null address"""
    code = "ConsiderationItemRecipientCannotBeZeroAddress"


# ── Redemption ────────────────────────────────────────────────

class RedemptionError(RedeemablesError):
    """Raised by the validator and receiver adapters. All-or-nothing."""
    code = "RedemptionError"


class InvalidCampaignId(ConfigError, RedemptionError):
    code = "InvalidCampaignId"


class MalformedContext(RedemptionError):
    code = "MalformedContext"


class InvalidCaller(RedemptionError):
    code = "InvalidCaller"


class NotActive(RedemptionError):
    code = "NotActive"


class MaxRedemptionsReached(RedemptionError):
    """A single request asks for more redemptions than the campaign cap"""
    code = "MaxRedemptionsReached"


class MaxTotalRedemptionsReached(RedemptionError):
    code = "MaxTotalRedemptionsReached"


class RedeemMismatchedLengths(RedemptionError):
    code = "RedeemMismatchedLengths"


class InvalidConsiderationLength(RedemptionError):
    code = "InvalidConsiderationLength"


class InvalidConsiderationItem(RedemptionError):
    code = "InvalidConsiderationItem"


class InvalidOfferLength(RedemptionError):
    code = "InvalidOfferLength"


class ConsiderationRecipientNotFound(RedemptionError):
    code = "ConsiderationRecipientNotFound"


class InvalidSignature(RedemptionError):
    code = "InvalidSignature"


class DigestAlreadyUsed(RedemptionError):
    code = "DigestAlreadyUsed"


class ReentrantRedemption(RedemptionError):
    """A campaign was re-entered before its first evaluation finished"""
    code = "ReentrantRedemption"


class MintDispatchError(RedemptionError):
    code = "MintDispatchError"


class RedemptionValuesAreImmutable(RedemptionError):
    code = "RedemptionValuesAreImmutable"


class TraitValueUnchanged(RedemptionError):
    code = "TraitValueUnchanged"


# ── Settlement side ───────────────────────────────────────────

class CriteriaError(RedeemablesError):
    """Raised while resolving criteria, before the engine is called"""
    code = "CriteriaError"


class InvalidCriteriaProof(CriteriaError):
    code = "InvalidProof"


class CriteriaNotEnabledForItem(CriteriaError):
    code = "CriteriaNotEnabledForItem"


# ── Tokens ────────────────────────────────────────────────────

class TokenError(RedeemablesError):
    """Raised by the in-memory token contracts"""
    code = "TokenError"
