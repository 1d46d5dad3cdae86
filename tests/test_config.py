from __future__ import annotations

import pytest

from catbond_etl.config import ArtemisConfig
from catbond_etl.exceptions import CatBondPipelineError, EmptySourceError


def test_defaults_point_at_artemis(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("ARTEMIS_BASE_URL", "ARTEMIS_SFID", "ARTEMIS_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)

    config = ArtemisConfig()

    assert config.deal_data_url == (
        "https://www.artemis.bm/?sfid=59514&sf_action=get_data&sf_data=results"
    )
    assert config.losses_url == "https://www.artemis.bm/cat-bond-losses/"
    assert config.timeout == 30
    assert config.loss_headers()["Referer"] == "https://www.artemis.bm/"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ARTEMIS_BASE_URL", "http://mirror.local/")
    monkeypatch.setenv("ARTEMIS_SFID", "42")
    monkeypatch.setenv("ARTEMIS_TIMEOUT", "2.5")

    config = ArtemisConfig()

    assert config.base_url == "http://mirror.local"
    assert config.search_filter_id == 42
    assert config.timeout == 2.5
    assert config.deal_headers()["Referer"] == "http://mirror.local/deal-directory/"


def test_empty_source_error_message() -> None:
    error = EmptySourceError("Cat bond losses")
    assert isinstance(error, CatBondPipelineError)
    assert error.source == "Cat bond losses"
    assert str(error) == "Cat bond losses scraping returned no data"
