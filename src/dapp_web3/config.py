"""Configuration for dapp-web3-utils.

Loads connection settings from a YAML file (``${VAR}`` placeholders are
expanded from the environment) or directly from environment variables.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------

DEFAULT_RPC_URL = "http://127.0.0.1:8545"


class Web3Config(BaseModel):
    """Connection and transaction settings."""

    rpc_url: str = DEFAULT_RPC_URL
    account: Optional[str] = None          # checksummed address of the active account
    network_id: int = 1
    confirmation_blocks: int = Field(default=12, ge=0)
    poll_interval: float = Field(default=2.0, gt=0)  # seconds between block polls
    request_timeout: int = 30


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def config_from_env() -> Web3Config:
    """Build a :class:`Web3Config` from ``WEB3_*`` environment variables."""
    data: dict[str, object] = {}
    if os.environ.get("WEB3_RPC_URL"):
        data["rpc_url"] = os.environ["WEB3_RPC_URL"]
    if os.environ.get("WEB3_ACCOUNT"):
        data["account"] = os.environ["WEB3_ACCOUNT"]
    if os.environ.get("WEB3_NETWORK_ID"):
        data["network_id"] = os.environ["WEB3_NETWORK_ID"]
    return Web3Config.model_validate(data)


def load_config(path: Path) -> Web3Config:
    """Load and validate a configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation.
    """
    raw_text = path.read_text(encoding="utf-8")
    raw_data = yaml.safe_load(raw_text) or {}
    expanded = _expand_env_recursive(raw_data)
    return Web3Config.model_validate(expanded)


def save_config(config: Web3Config, path: Path) -> None:
    """Serialize a :class:`Web3Config` to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)
