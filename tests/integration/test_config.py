from __future__ import annotations

from pathlib import Path

import pytest

from src.core.fee_router import FinalPageMode
from src.integration.config import ConfigError, apply_env_overrides, load_config, parse_config

ROOT = Path(__file__).resolve().parents[2]
EXAMPLE = ROOT / "config" / "vault.example.yaml"

_ENV = (
    "FEE_ROUTER_MIN_PAYOUT",
    "FEE_ROUTER_DAILY_CAP",
    "FEE_ROUTER_PAGE_SIZE",
    "FEE_ROUTER_LOG_LEVEL",
    "FEE_ROUTER_STRICT_FINAL_PAGE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def _minimal() -> dict:
    return {
        "vault": {"id": "v1", "authority": "auth", "creator": "creator"},
        "policy": {"quote_mint": "USDC", "investor_fee_share_bps": 5000},
        "position": {"base_mint": "SOL"},
        "investors": {"total_allocation": 100, "entries": []},
    }


class TestExampleFile:
    def test_loads(self):
        cfg = load_config(EXAMPLE)
        assert cfg.vault_id == "demo-vault"
        assert cfg.policy.quote_mint == "USDC"
        assert cfg.policy.final_page_mode is FinalPageMode.STRICT
        assert cfg.page_size == 2
        assert [i.investor for i in cfg.investors] == ["alice", "bob", "carol"]
        assert cfg.investors[0].vesting is not None
        assert cfg.investors[2].vesting is None


class TestParse:
    def test_defaults(self):
        cfg = parse_config(_minimal())
        assert cfg.policy.min_payout == 0
        assert cfg.policy.daily_cap is None
        assert cfg.position.position_id == "position:v1"
        assert cfg.log_level == "INFO"
        assert cfg.days == 1

    def test_unknown_section(self):
        obj = _minimal()
        obj["extra"] = {}
        with pytest.raises(ConfigError):
            parse_config(obj)

    def test_bad_share(self):
        obj = _minimal()
        obj["policy"]["investor_fee_share_bps"] = 10_001
        with pytest.raises(ConfigError):
            parse_config(obj)

    def test_bool_is_not_int(self):
        obj = _minimal()
        obj["policy"]["min_payout"] = True
        with pytest.raises(ConfigError):
            parse_config(obj)

    def test_bad_final_page_mode(self):
        obj = _minimal()
        obj["policy"]["final_page_mode"] = "lenient"
        with pytest.raises(ConfigError):
            parse_config(obj)

    def test_crank_span_must_fit_timestamps(self):
        obj = _minimal()
        obj["crank"] = {"start_ts": (1 << 63) - 1 - 86_400, "days": 2}
        with pytest.raises(ConfigError):
            parse_config(obj)
        obj["crank"]["days"] = 1
        assert parse_config(obj).start_ts == (1 << 63) - 1 - 86_400

    def test_bad_vesting(self):
        obj = _minimal()
        obj["investors"]["entries"] = [
            {
                "investor": "a",
                "stream_reference": "sa",
                "initial_allocation": 1,
                "vesting": {"total": 1, "start_ts": 10, "end_ts": 5},
            }
        ]
        with pytest.raises(ConfigError):
            parse_config(obj)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("vault: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)


class TestEnvOverrides:
    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("FEE_ROUTER_MIN_PAYOUT", "25")
        monkeypatch.setenv("FEE_ROUTER_DAILY_CAP", "1000")
        monkeypatch.setenv("FEE_ROUTER_PAGE_SIZE", "8")
        monkeypatch.setenv("FEE_ROUTER_LOG_LEVEL", "debug")
        monkeypatch.setenv("FEE_ROUTER_STRICT_FINAL_PAGE", "0")
        cfg = apply_env_overrides(parse_config(_minimal()))
        assert cfg.policy.min_payout == 25
        assert cfg.policy.daily_cap == 1000
        assert cfg.page_size == 8
        assert cfg.log_level == "DEBUG"
        assert cfg.policy.final_page_mode is FinalPageMode.FORFEIT

    def test_cap_can_be_disabled(self, monkeypatch):
        obj = _minimal()
        obj["policy"]["daily_cap"] = 10
        monkeypatch.setenv("FEE_ROUTER_DAILY_CAP", "none")
        assert apply_env_overrides(parse_config(obj)).policy.daily_cap is None

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("FEE_ROUTER_MIN_PAYOUT", "ten")
        with pytest.raises(ConfigError):
            apply_env_overrides(parse_config(_minimal()))
        monkeypatch.setenv("FEE_ROUTER_MIN_PAYOUT", "-1")
        with pytest.raises(ConfigError):
            apply_env_overrides(parse_config(_minimal()))
        monkeypatch.delenv("FEE_ROUTER_MIN_PAYOUT")
        monkeypatch.setenv("FEE_ROUTER_PAGE_SIZE", "65")
        with pytest.raises(ConfigError):
            apply_env_overrides(parse_config(_minimal()))
