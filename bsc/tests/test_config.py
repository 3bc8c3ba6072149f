import logging

import pytest

from bsc.core.config import Settings, configure_logging
from bsc.core.exceptions import ScorecardContractError, UnknownPerspectiveError
from bsc.schemas import CompanyConfig, Perspective


def test_settings_defaults():
    current = Settings()
    assert current.WEIGHT_TOLERANCE == pytest.approx(0.01)
    assert current.MAX_LANE_JUMP == 2
    assert current.BONUS_CEILING == pytest.approx(120)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("BSC_MAX_LANE_JUMP", "3")
    monkeypatch.setenv("BSC_LOG_LEVEL", "debug")
    current = Settings()
    assert current.MAX_LANE_JUMP == 3
    assert current.LOG_LEVEL == "DEBUG"


def test_company_config_from_settings(perspectives):
    source = Settings(TREND_EPSILON=1.5, PRIMARY_SINGLE_MIN=60)
    config = CompanyConfig.from_settings(perspectives, source)
    assert config.trend_epsilon == pytest.approx(1.5)
    assert config.primary_single_min == pytest.approx(60)
    assert config.top_sort_order == 1
    assert config.bottom_sort_order == 4


def test_duplicate_sort_order_rejected():
    with pytest.raises(ValueError):
        CompanyConfig(
            perspectives=[
                Perspective(id=1, name="A", sort_order=1, company_weight=50),
                Perspective(id=2, name="B", sort_order=1, company_weight=50),
            ]
        )


def test_unknown_perspective_lookup(config):
    with pytest.raises(UnknownPerspectiveError) as exc_info:
        config.perspective(99)
    assert isinstance(exc_info.value, ScorecardContractError)
    assert "99" in exc_info.value.detail


def test_configure_logging_accepts_lowercase(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
    configure_logging("warning")
    assert calls["level"] == "WARNING"
