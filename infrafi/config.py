"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import InterestRateModel

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RevenueSharingConfig:
    deployer_share: float = 15.0
    protocol_share: float = 5.0
    lender_share: float = 80.0


@dataclass(frozen=True)
class ProtocolParamsConfig:
    max_ltv_percent: float = 75.0
    liquidation_threshold: float = 80.0
    interest_rate_model: InterestRateModel = field(default_factory=InterestRateModel)
    revenue_sharing: RevenueSharingConfig = field(default_factory=RevenueSharingConfig)


@dataclass(frozen=True)
class ThresholdsConfig:
    health_factor_warning: float = 1.3
    ltv_warning: float = 70.0


@dataclass(frozen=True)
class SubgraphConfig:
    url: str = ""
    timeout: int = 30
    page_size: int = 100


@dataclass(frozen=True)
class DisplayConfig:
    token_symbol: str = "WOORT"
    decimals: int = 18


@dataclass(frozen=True)
class AppConfig:
    protocol: ProtocolParamsConfig = field(default_factory=ProtocolParamsConfig)
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    subgraph: SubgraphConfig = field(default_factory=SubgraphConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_rate_model(raw: dict[str, Any]) -> InterestRateModel:
    defaults = InterestRateModel()
    return InterestRateModel(
        base_rate=int(raw.get("base_rate", defaults.base_rate)),
        multiplier=int(raw.get("multiplier", defaults.multiplier)),
        jump=int(raw.get("jump", defaults.jump)),
        kink=int(raw.get("kink", defaults.kink)),
    )


def _build_revenue_sharing(raw: dict[str, Any]) -> RevenueSharingConfig:
    return RevenueSharingConfig(
        deployer_share=float(raw.get("deployer_share", 15.0)),
        protocol_share=float(raw.get("protocol_share", 5.0)),
        lender_share=float(raw.get("lender_share", 80.0)),
    )


def _build_protocol(raw: dict[str, Any]) -> ProtocolParamsConfig:
    return ProtocolParamsConfig(
        max_ltv_percent=float(raw.get("max_ltv_percent", 75.0)),
        liquidation_threshold=float(raw.get("liquidation_threshold", 80.0)),
        interest_rate_model=_build_rate_model(raw.get("interest_rate_model") or {}),
        revenue_sharing=_build_revenue_sharing(raw.get("revenue_sharing") or {}),
    )


def _build_thresholds(raw: dict[str, Any]) -> ThresholdsConfig:
    return ThresholdsConfig(
        health_factor_warning=float(raw.get("health_factor_warning", 1.3)),
        ltv_warning=float(raw.get("ltv_warning", 70.0)),
    )


def _build_subgraph(raw: dict[str, Any]) -> SubgraphConfig:
    return SubgraphConfig(
        url=raw.get("url", ""),
        timeout=int(raw.get("timeout", 30)),
        page_size=int(raw.get("page_size", 100)),
    )


def _build_display(raw: dict[str, Any]) -> DisplayConfig:
    return DisplayConfig(
        token_symbol=raw.get("token_symbol", "WOORT"),
        decimals=int(raw.get("decimals", 18)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        protocol=_build_protocol(raw.get("protocol") or {}),
        thresholds=_build_thresholds(raw.get("thresholds") or {}),
        subgraph=_build_subgraph(raw.get("subgraph") or {}),
        display=_build_display(raw.get("display") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    protocol = cfg.protocol
    shares = protocol.revenue_sharing
    total_share = shares.deployer_share + shares.protocol_share + shares.lender_share
    if abs(total_share - 100.0) > 1e-9:
        raise ValueError(
            f"Revenue shares must sum to 100, got {total_share:g}"
        )

    if not 0 < protocol.liquidation_threshold <= 100:
        raise ValueError(
            f"Liquidation threshold {protocol.liquidation_threshold:g} "
            "must be within (0, 100]"
        )
    if protocol.max_ltv_percent > protocol.liquidation_threshold:
        raise ValueError(
            f"Max LTV {protocol.max_ltv_percent:g}% exceeds liquidation "
            f"threshold {protocol.liquidation_threshold:g}%"
        )

    model = protocol.interest_rate_model
    for name in ("base_rate", "multiplier", "jump", "kink"):
        if getattr(model, name) < 0:
            raise ValueError(f"Interest rate model '{name}' must not be negative")

    thresholds = cfg.thresholds
    if not 0 < thresholds.ltv_warning <= 100:
        raise ValueError("ltv_warning must be within (0, 100]")
    if thresholds.health_factor_warning < 1.0:
        raise ValueError("health_factor_warning must be at least 1.0")

    if cfg.display.decimals < 0:
        raise ValueError("display.decimals must not be negative")
