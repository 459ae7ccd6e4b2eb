from __future__ import annotations

from pathlib import Path

import pytest

from lounge_app.config import RuntimeConfig
from main import bootstrap_engine, run_cli_demo


def build_config(tmp_path: Path) -> RuntimeConfig:
    return RuntimeConfig(data_dir=str(tmp_path / "log"), member_file=str(tmp_path / "membership.csv"))


def test_bootstrap_wires_engine_and_layout(tmp_path: Path) -> None:
    config = build_config(tmp_path)
    engine, drag = bootstrap_engine(config)
    try:
        assert len(engine.devices()) == 18
        assert drag.layout.slot_for(16) == 0
        assert config.layout_file.exists()
    finally:
        engine.close()


def test_cli_demo_leaves_no_active_sessions(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = build_config(tmp_path)
    run_cli_demo(config)

    output = capsys.readouterr().out
    assert "Active Users: 0" in output
    assert "log entries today: 3" in output
    assert "DEMO-1" in (tmp_path / "membership.csv").read_text(encoding="utf-8")
