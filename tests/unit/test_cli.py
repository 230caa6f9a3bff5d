"""Unit tests for CLI argument parsing and command output."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from infrafi.cli import _run, build_parser


class TestBuildParser:
    def test_position_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["position", "--collateral", "100", "--principal", "50"])
        assert args.command == "position"
        assert args.collateral == "100"
        assert args.interest == "0"

    def test_validate_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["validate", "1.5", "--max", "10"])
        assert args.amount == "1.5"
        assert args.max_amount == "10"

    def test_rates_default_utilization(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["rates"])
        assert args.utilization is None

    def test_rates_custom_utilization(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["rates", "--utilization", "85"])
        assert args.utilization == 85.0

    def test_timeline_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["timeline", "0xABC", "--input", "h.json"])
        assert args.address == "0xABC"
        assert args.input == "h.json"

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "rates"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "rates"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None


class TestCommands:
    @pytest.mark.asyncio
    async def test_position_report(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "position",
             "--collateral", "100", "--principal", "75"]
        )
        assert await _run(args) == 0
        out = capsys.readouterr().out
        assert "LTV: 75.00%" in out
        assert "Health Factor: 1.07" in out
        assert "At Risk" in out

    @pytest.mark.asyncio
    async def test_position_rejects_bad_amount(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "position",
             "--collateral", "lots", "--principal", "75"]
        )
        assert await _run(args) == 2
        assert "Error" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_validate_ok(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "validate", "10", "--max", "10"]
        )
        assert await _run(args) == 0
        assert "Valid" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_validate_exceeds(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "validate", "10.5", "--max", "10"]
        )
        assert await _run(args) == 1
        assert "Amount exceeds maximum" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_rates(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "rates", "--utilization", "90"]
        )
        assert await _run(args) == 0
        out = capsys.readouterr().out
        assert "Borrow APY: 14.40%" in out
        assert "Supply APY: 10.36%" in out
        assert "Kink Point:  80%" in out

    @pytest.mark.asyncio
    async def test_timeline_from_file(
        self,
        sample_yaml_path: Path,
        sample_history_payload: dict,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        history_file = tmp_path / "history.json"
        history_file.write_text(json.dumps({"data": sample_history_payload}))
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "timeline", "0xabc",
             "--input", str(history_file)]
        )
        assert await _run(args) == 0
        out = capsys.readouterr().out
        assert out.count("\n") >= 5
        assert "Now" in out
        assert "Net Interest: 2.000000000000000000 WOORT" in out

    @pytest.mark.asyncio
    async def test_timeline_without_subgraph_url(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("display:\n  token_symbol: WOORT\n")
        args = build_parser().parse_args(
            ["--config", str(cfg_file), "timeline", "0xabc"]
        )
        assert await _run(args) == 2
        assert "subgraph.url" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_timeline_missing_input_file(
        self, sample_yaml_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "timeline", "0xabc",
             "--input", str(tmp_path / "missing.json")]
        )
        assert await _run(args) == 2
        assert "Error: cannot read" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_timeline_invalid_json_input(
        self, sample_yaml_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        history_file = tmp_path / "history.json"
        history_file.write_text("{not json")
        args = build_parser().parse_args(
            ["--config", str(sample_yaml_path), "timeline", "0xabc",
             "--input", str(history_file)]
        )
        assert await _run(args) == 2
        assert "Error: cannot read" in capsys.readouterr().err
