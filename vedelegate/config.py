"""Environment-driven settings (.env via python-dotenv)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError

NODE_URL = "https://mainnet.vechain.org"
NETWORK = "main"
APP_TITLE = "veDelegate.vet for dApps"
APP_DESCRIPTION = "Management of veDelegate staking within VeBetterDAO dApps."

# VeBetterDAO tokens on mainnet
B3TR_MAINNET = "0x5ef79995FE8a89e0812330E4378eB2660ceDe699"
VOT3_MAINNET = "0x76Ca782B59C74d088C7D2Cce2f211BC00836c602"


@dataclass(frozen=True)
class ContractAddresses:
    b3tr: str
    vot3: str
    registry: str
    votes: str


@dataclass(frozen=True)
class Settings:
    node_url: str = NODE_URL
    network: str = NETWORK
    delegation_url: Optional[str] = None
    app_title: str = APP_TITLE
    app_description: str = APP_DESCRIPTION
    b3tr_address: str = B3TR_MAINNET
    vot3_address: str = VOT3_MAINNET
    registry_address: str = ""
    votes_address: str = ""
    private_key: Optional[str] = None
    http_timeout: float = 10.0
    log_level: str = "INFO"

    def contract_addresses(self) -> ContractAddresses:
        missing = [k for k, v in (
            ("VEDELEGATE_REGISTRY_ADDRESS", self.registry_address),
            ("VEDELEGATE_VOTES_ADDRESS", self.votes_address),
        ) if not v]
        if missing:
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")
        return ContractAddresses(
            b3tr=self.b3tr_address,
            vot3=self.vot3_address,
            registry=self.registry_address,
            votes=self.votes_address,
        )


def _get(key, default=None):
    val = os.getenv(key, "").strip()
    return val if val else default


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)

    timeout_raw = _get("VEDELEGATE_HTTP_TIMEOUT", "10")
    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise ConfigError(f"VEDELEGATE_HTTP_TIMEOUT must be a number, got {timeout_raw!r}")

    return Settings(
        node_url=_get("VEDELEGATE_NODE_URL", NODE_URL).rstrip("/"),
        network=_get("VEDELEGATE_NETWORK", NETWORK),
        delegation_url=_get("VEDELEGATE_DELEGATION_URL"),
        app_title=_get("VEDELEGATE_APP_TITLE", APP_TITLE),
        app_description=_get("VEDELEGATE_APP_DESCRIPTION", APP_DESCRIPTION),
        b3tr_address=_get("VEDELEGATE_B3TR_ADDRESS", B3TR_MAINNET),
        vot3_address=_get("VEDELEGATE_VOT3_ADDRESS", VOT3_MAINNET),
        registry_address=_get("VEDELEGATE_REGISTRY_ADDRESS", ""),
        votes_address=_get("VEDELEGATE_VOTES_ADDRESS", ""),
        private_key=_get("VEDELEGATE_PRIVATE_KEY"),
        http_timeout=timeout,
        log_level=_get("VEDELEGATE_LOG_LEVEL", "INFO").upper(),
    )
