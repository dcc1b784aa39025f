"""Shared configuration loader for gnoclient."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG_PATH = Path.home() / ".gnoclient.yaml"
DEFAULT_REMOTE = "http://127.0.0.1:26657"
DEFAULT_CHAIN_ID = "dev"
DEFAULT_TIMEOUT = 30.0
_CONFIG_PATH_OVERRIDE: Path | None = None


@dataclass
class RPCConfig:
    """Connection details for a tm2 node's JSON-RPC endpoint."""

    remote: str = DEFAULT_REMOTE
    chain_id: str = DEFAULT_CHAIN_ID
    timeout: float = DEFAULT_TIMEOUT

    @property
    def base_url(self) -> str:
        return self.remote.rstrip("/")


def set_default_config_path(path: str | Path | None) -> None:
    """Remember a user-supplied config path for future loads."""

    global _CONFIG_PATH_OVERRIDE
    _CONFIG_PATH_OVERRIDE = Path(path).expanduser() if path else None


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with an 'rpc' section")
    return loaded


def _coerce_timeout(raw: Any, *, source: str) -> float | None:
    if raw is None:
        return None
    try:
        timeout = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid timeout in {source}: {raw}") from exc
    if timeout <= 0:
        raise ConfigurationError(f"Timeout in {source} must be positive: {raw}")
    return timeout


def _normalize_remote(raw: str) -> str:
    # tm2 tooling accepts tcp:// remotes; JSON-RPC over HTTP is what they mean
    if raw.startswith("tcp://"):
        raw = "http://" + raw[len("tcp://") :]
    elif "://" not in raw:
        raw = "http://" + raw
    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ConfigurationError(f"Invalid RPC remote URL: {raw}")
    return raw


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def load_rpc_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> RPCConfig:
    """Load RPC configuration from overrides, environment variables and optional YAML."""

    env_map = os.environ if env is None else env
    explicit_path = config_path is not None or _CONFIG_PATH_OVERRIDE is not None
    path = (
        Path(config_path).expanduser()
        if config_path is not None
        else _CONFIG_PATH_OVERRIDE or DEFAULT_CONFIG_PATH
    )

    file_config = _load_config_file(path, required=explicit_path)
    rpc_section = file_config.get("rpc", {})
    if rpc_section is None:
        rpc_section = {}
    if not isinstance(rpc_section, dict):
        raise ConfigurationError(f"Expected 'rpc' to be a mapping in {path}")

    override_map = {k: v for k, v in (overrides or {}).items() if v is not None}

    env_remote = env_map.get("GNO_RPC_REMOTE") or env_map.get("GNOCLIENT_REMOTE")
    env_chain_id = env_map.get("GNO_CHAIN_ID") or env_map.get("GNOCLIENT_CHAIN_ID")
    env_timeout = _coerce_timeout(env_map.get("GNO_RPC_TIMEOUT"), source="environment")

    resolved_remote = _first_value(
        override_map.get("remote"), env_remote, rpc_section.get("remote"), DEFAULT_REMOTE
    )
    resolved_chain_id = _first_value(
        override_map.get("chain_id"), env_chain_id, rpc_section.get("chain_id"), DEFAULT_CHAIN_ID
    )
    resolved_timeout = _first_value(
        _coerce_timeout(override_map.get("timeout"), source="overrides"),
        env_timeout,
        _coerce_timeout(rpc_section.get("timeout"), source=f"{path} rpc.timeout"),
        DEFAULT_TIMEOUT,
    )

    if not str(resolved_chain_id).strip():
        raise ConfigurationError("chain id must not be empty")

    return RPCConfig(
        remote=_normalize_remote(str(resolved_remote)),
        chain_id=str(resolved_chain_id),
        timeout=resolved_timeout,
    )
