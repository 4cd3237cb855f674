from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, List

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aggregation.settings import AggregationSettings, reset_settings_cache  # noqa: E402

CREDENTIALS = (
    "alpha_vantage_api_key",
    "finnhub_api_key",
    "gnews_api_key",
    "guardian_api_key",
    "nyt_api_key",
    "news_api_key",
    "twitter_bearer_token",
)


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def make_settings() -> Callable[..., AggregationSettings]:
    """Settings with every credential unset and no inter-call delay unless overridden."""

    def _make(**overrides: Any) -> AggregationSettings:
        values: dict[str, Any] = {name: None for name in CREDENTIALS}
        values["provider_call_delay_ms"] = 0
        values["cache_backend"] = "memory"
        values.update(overrides)
        fields = AggregationSettings.model_fields
        return AggregationSettings(**{fields[k].alias or k: v for k, v in values.items()})

    return _make


class FakeClock:
    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class StubAdapter:
    """Adapter double recording its calls; returns canned records or a skip reason."""

    credential_field = None

    def __init__(self, name: str, records: List[Any] | None = None, *, reason: str = "no_results",
                 configured: bool = True, error: Exception | None = None) -> None:
        self.name = name
        self.records = list(records or [])
        self.reason = reason
        self.configured = configured
        self.error = error
        self.calls: List[tuple[list[str], int]] = []

    def is_configured(self) -> bool:
        return self.configured

    async def fetch(self, terms, limit=10):
        from aggregation.adapters.base import AdapterResult

        self.calls.append((list(terms), limit))
        if self.error is not None:
            raise self.error
        if self.records:
            return AdapterResult(self.name, records=list(self.records))
        return AdapterResult(self.name, skipped_reason=self.reason)


@pytest.fixture
def stub_adapter() -> type[StubAdapter]:
    return StubAdapter
