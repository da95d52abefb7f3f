"""Engine and client configuration for guardwell."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from guardwell._constants import (
    BASE_URL,
    GAS_CRITICAL_PPM,
    GAS_WARNING_PPM,
    MARKED_SAFE_TTL_S,
    NUDGE_SENT_TTL_S,
    TEMP_CRITICAL_C,
    TEMP_WARNING_C,
)
from guardwell.exceptions import GuardwellConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise GuardwellConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class StatusThresholds:
    """Sensor thresholds used by grid status derivation.

    A reading at or above ``*_critical`` is Critical; at or above
    ``*_warning`` is Warning.
    """

    temp_warning: float = TEMP_WARNING_C
    temp_critical: float = TEMP_CRITICAL_C
    gas_warning: float = GAS_WARNING_PPM
    gas_critical: float = GAS_CRITICAL_PPM

    def __post_init__(self) -> None:
        if self.temp_warning > self.temp_critical:
            raise GuardwellConfigError("temp_warning must not exceed temp_critical")
        if self.gas_warning > self.gas_critical:
            raise GuardwellConfigError("gas_warning must not exceed gas_critical")


@dataclasses.dataclass(frozen=True)
class GuardwellConfig:
    """Engine and HTTP client configuration.

    Parameters
    ----------
    base_url : str
        REST API base URL, including the ``/api`` prefix.
    api_token : str or None
        Bearer token sent with every request when set.
    request_timeout : float
        Total per-request timeout in seconds.
    marked_safe_ttl : float
        Seconds the "marked safe" indicator stays visible.
    nudge_ttl : float
        Seconds the "nudge sent" indicator stays visible.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    thresholds : StatusThresholds
        Temperature and gas thresholds for status derivation.
    """

    base_url: str = BASE_URL
    api_token: str | None = None
    request_timeout: float = 10.0
    marked_safe_ttl: float = MARKED_SAFE_TTL_S
    nudge_ttl: float = NUDGE_SENT_TTL_S
    api_trace_enabled: bool = False
    thresholds: StatusThresholds = dataclasses.field(default_factory=StatusThresholds)

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise GuardwellConfigError("request_timeout must be positive")
        if self.marked_safe_ttl < 0 or self.nudge_ttl < 0:
            raise GuardwellConfigError("indicator lifetimes must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> GuardwellConfig:
        """Create configuration from ``GUARDWELL_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        GuardwellConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        threshold_kwargs: dict[str, float] = {}
        _ENV_THRESHOLD_MAP = {
            "GUARDWELL_TEMP_WARNING": "temp_warning",
            "GUARDWELL_TEMP_CRITICAL": "temp_critical",
            "GUARDWELL_GAS_WARNING": "gas_warning",
            "GUARDWELL_GAS_CRITICAL": "gas_critical",
        }
        for env_key, field_name in _ENV_THRESHOLD_MAP.items():
            val = _env_float(env, env_key)
            if val is not None:
                threshold_kwargs[field_name] = val

        threshold_overrides = overrides.pop("thresholds", None)
        if isinstance(threshold_overrides, dict):
            threshold_kwargs.update(threshold_overrides)
        elif isinstance(threshold_overrides, StatusThresholds):
            threshold_kwargs = dataclasses.asdict(threshold_overrides)

        config_kwargs: dict[str, Any] = {"thresholds": StatusThresholds(**threshold_kwargs)}

        base_url = env.get("GUARDWELL_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")
        token = env.get("GUARDWELL_API_TOKEN")
        if token:
            config_kwargs["api_token"] = token

        _ENV_FLOAT_MAP = {
            "GUARDWELL_REQUEST_TIMEOUT": "request_timeout",
            "GUARDWELL_MARKED_SAFE_TTL": "marked_safe_ttl",
            "GUARDWELL_NUDGE_TTL": "nudge_ttl",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            if field_name in overrides:
                continue
            val = _env_float(env, env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("GUARDWELL_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
