"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from infrafi.config import (
    AppConfig,
    DisplayConfig,
    ProtocolParamsConfig,
    RevenueSharingConfig,
    SubgraphConfig,
    ThresholdsConfig,
)
from infrafi.models import InterestRateModel, Position

WAD = 10**18

# 2024-01-01 00:00:00 UTC
T0 = 1_704_067_200


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_rate_model() -> InterestRateModel:
    return InterestRateModel(base_rate=300, multiplier=800, jump=5000, kink=8000)


@pytest.fixture()
def sample_app_config(sample_rate_model: InterestRateModel) -> AppConfig:
    return AppConfig(
        protocol=ProtocolParamsConfig(
            max_ltv_percent=75.0,
            liquidation_threshold=80.0,
            interest_rate_model=sample_rate_model,
            revenue_sharing=RevenueSharingConfig(
                deployer_share=15.0, protocol_share=5.0, lender_share=80.0
            ),
        ),
        thresholds=ThresholdsConfig(health_factor_warning=1.3, ltv_warning=70.0),
        subgraph=SubgraphConfig(url="https://subgraph.example.com", timeout=5),
        display=DisplayConfig(token_symbol="WOORT", decimals=18),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_position() -> Position:
    # 50 tokens of debt against 100 tokens of collateral
    return Position(
        principal=45 * WAD,
        accrued_interest=5 * WAD,
        collateral_value=100 * WAD,
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    protocol:
      max_ltv_percent: 75
      liquidation_threshold: 80
      interest_rate_model:
        base_rate: 300
        multiplier: 800
        jump: 5000
        kink: 8000
      revenue_sharing:
        deployer_share: 15
        protocol_share: 5
        lender_share: 80
    thresholds:
      health_factor_warning: 1.3
      ltv_warning: 70
    subgraph:
      url: "https://subgraph.example.com"
      timeout: 10
    display:
      token_symbol: WOORT
      decimals: 18
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample subgraph data
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_history_payload() -> dict:
    """A user who supplies, deposits a node, borrows, then repays part."""
    return {
        "userPosition": {
            "totalSupplied": str(100 * WAD),
            "totalBorrowed": str(30 * WAD),
            "collateralValue": str(200 * WAD),
            "totalSupplyInterest": str(4 * WAD),
            "totalBorrowInterest": str(2 * WAD),
            "firstInteractionTimestamp": str(T0),
        },
        "supplyEvents": [
            {"id": "s1", "timestamp": str(T0), "amount": str(100 * WAD)},
        ],
        "withdrawEvents": [],
        "borrowEvents": [
            {"id": "b1", "timestamp": str(T0 + 2 * 86400), "amount": str(40 * WAD)},
        ],
        "repayEvents": [
            {"id": "r1", "timestamp": str(T0 + 4 * 86400), "amount": str(10 * WAD)},
        ],
        "nodeDeposits": [
            {"id": "n1", "timestamp": str(T0 + 86400), "assetValue": str(200 * WAD)},
        ],
        "nodeWithdrawals": [],
    }
