"""
Configuration loading.

Offerer settings come from the environment or a YAML file. Campaign
definitions come from YAML:

    campaign:
      offer:
        - {item_type: NON_FUNGIBLE_WITH_CRITERIA, token: "0xabc...", amount: 1}
      consideration:
        - {item_type: NON_FUNGIBLE_WITH_CRITERIA, token: "0xdef...",
           identifier_or_criteria: 0, amount: 1, recipient: "0x...dead"}
      start_time: 1700000000
      end_time: 1800000000
      max_total_redemptions: 100
      manager: "0x..."
      signer: null
    uri: "ipfs://..."
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

import yaml

from redeemables.core.models import CampaignParams


ENV_PREFIX = "REDEEMABLES_"


@dataclass(frozen=True)
class OffererConfig:
    address:        str
    settlement:     str
    domain_name:    str = "Redeemables"
    domain_version: str = "1.0"
    event_log:      Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "OffererConfig":
        missing = [k for k in ("address", "settlement") if not data.get(k)]
        if missing:
            raise ValueError(f"Offerer config missing required keys: {missing}")
        event_log = data.get("event_log")
        return cls(
            address=        data["address"],
            settlement=     data["settlement"],
            domain_name=    data.get("domain_name") or "Redeemables",
            domain_version= str(data.get("domain_version") or "1.0"),
            event_log=      Path(event_log) if event_log else None,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OffererConfig":
        """
        Read REDEEMABLES_ADDRESS, REDEEMABLES_SETTLEMENT and the optional
        REDEEMABLES_DOMAIN_NAME, REDEEMABLES_DOMAIN_VERSION,
        REDEEMABLES_EVENT_LOG.
        """
        environ = os.environ if environ is None else environ
        return cls.from_dict({
            "address":        environ.get(ENV_PREFIX + "ADDRESS"),
            "settlement":     environ.get(ENV_PREFIX + "SETTLEMENT"),
            "domain_name":    environ.get(ENV_PREFIX + "DOMAIN_NAME"),
            "domain_version": environ.get(ENV_PREFIX + "DOMAIN_VERSION"),
            "event_log":      environ.get(ENV_PREFIX + "EVENT_LOG"),
        })

    @classmethod
    def from_yaml(cls, path: Path) -> "OffererConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("offerer", data))


def load_campaign_file(path: Path) -> Tuple[CampaignParams, str]:
    """Parse a campaign YAML file into (params, uri)."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    campaign = data.get("campaign", data)
    return CampaignParams.from_dict(campaign), data.get("uri", "") or ""


def load_campaign_params(path: Path) -> CampaignParams:
    return load_campaign_file(path)[0]
