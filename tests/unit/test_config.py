"""
Tests for the configuration module.
"""

from pathlib import Path

import pytest

from opencsp.config import OpenCSPConfig


class TestOpenCSPConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("OPENCSP_PRICING_STRATEGY", raising=False)
        cfg = OpenCSPConfig()

        assert cfg.pricing_strategy == "dp"
        assert cfg.workaround
        assert cfg.get_tolerance("integrality") == 1e-6
        assert cfg.bpplib_path == cfg.data_path / "bpplib"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("OPENCSP_PRICING_STRATEGY", "IP")
        monkeypatch.setenv("OPENCSP_LOG_LEVEL", "debug")
        monkeypatch.setenv("OPENCSP_DATA_PATH", str(tmp_path))
        cfg = OpenCSPConfig()

        assert cfg.pricing_strategy == "ip"
        assert cfg.log_level == "DEBUG"
        assert cfg.data_path == tmp_path

    def test_rejects_unknown_strategy(self):
        with pytest.raises(ValueError):
            OpenCSPConfig(pricing_strategy="greedy")

    def test_rejects_bad_dp_settings(self):
        with pytest.raises(ValueError):
            OpenCSPConfig(dp_max_decimals=-1)
        with pytest.raises(ValueError):
            OpenCSPConfig(dp_max_candidates=0)

    def test_tolerances(self):
        cfg = OpenCSPConfig()
        cfg.set_tolerance("reduced_cost", 1e-4)
        assert cfg.get_tolerance("reduced_cost") == 1e-4
        assert cfg.get_tolerance("unknown") == 1e-6

    def test_instance_path(self, tmp_path):
        cfg = OpenCSPConfig(data_path=tmp_path)
        assert cfg.get_instance_path("bpplib", "a.txt") == tmp_path / "bpplib" / "a.txt"

    def test_save_load_roundtrip(self, tmp_path):
        cfg = OpenCSPConfig(
            data_path=tmp_path,
            pricing_strategy="ip",
            workaround=False,
            dp_max_decimals=2,
            dp_max_candidates=7,
        )
        cfg.set_tolerance("optimality", 1e-8)
        path = tmp_path / "opencsp.toml"
        cfg.save(path)

        loaded = OpenCSPConfig.load(path)

        assert loaded.pricing_strategy == "ip"
        assert loaded.workaround is False
        assert loaded.dp_max_decimals == 2
        assert loaded.dp_max_candidates == 7
        assert loaded.get_tolerance("optimality") == pytest.approx(1e-8)
        assert loaded.data_path == tmp_path

    def test_load_missing_file(self, tmp_path):
        cfg = OpenCSPConfig.load(tmp_path / "missing.toml")
        assert isinstance(cfg, OpenCSPConfig)

    def test_string_data_path(self):
        assert isinstance(OpenCSPConfig(data_path="some/dir").data_path, Path)
