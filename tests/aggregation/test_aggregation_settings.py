import pytest

from aggregation.settings import AggregationSettings, get_settings, reset_settings_cache

ENV_KEYS = (
    "ALPHA_VANTAGE_API_KEY",
    "FINNHUB_API_KEY",
    "GNEWS_API_KEY",
    "GUARDIAN_API_KEY",
    "NYT_API_KEY",
    "NEWS_API_KEY",
    "TWITTER_BEARER_TOKEN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment():
    settings = get_settings()

    assert settings.financial_cache_ttl_ms == 300_000
    assert settings.news_cache_ttl_ms == 900_000
    assert settings.provider_timeout_seconds == 10.0
    assert settings.quote_timeout_seconds == 8.0
    assert settings.provider_call_delay_ms == 150
    assert settings.nitter_rss_base == "https://nitter.poast.org"
    assert settings.credential("finnhub_api_key") is None


def test_reads_credentials_and_hosts_from_environment(monkeypatch):
    monkeypatch.setenv("FINNHUB_API_KEY", "fh-key")
    monkeypatch.setenv("NITTER_RSS_BASE", "https://nitter.example.org/")
    monkeypatch.setenv("FINANCIAL_CACHE_TTL_MS", "60000")

    settings = get_settings()

    assert settings.credential("finnhub_api_key") == "fh-key"
    assert settings.nitter_rss_base == "https://nitter.example.org"
    assert settings.financial_cache_ttl_ms == 60_000


def test_blank_credential_counts_as_absent(monkeypatch):
    monkeypatch.setenv("GNEWS_API_KEY", "   ")
    assert get_settings().gnews_api_key is None


def test_reset_settings_cache_reloads(monkeypatch):
    monkeypatch.setenv("NYT_API_KEY", "first")
    assert get_settings().credential("nyt_api_key") == "first"

    monkeypatch.setenv("NYT_API_KEY", "next")
    assert get_settings().credential("nyt_api_key") == "first"

    reset_settings_cache()
    assert get_settings().credential("nyt_api_key") == "next"


@pytest.mark.parametrize(
    "name,value",
    [
        ("PROVIDER_TIMEOUT_SECONDS", "45"),
        ("NITTER_RSS_BASE", "nitter.example.org"),
        ("CACHE_BACKEND", "memcached"),
        ("FINANCIAL_CACHE_TTL_MS", "0"),
    ],
)
def test_invalid_values_raise_runtime_error(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        get_settings()


def test_settings_are_frozen(make_settings):
    settings = make_settings()
    with pytest.raises(Exception):
        settings.log_level = "DEBUG"  # type: ignore[misc]
    assert isinstance(settings, AggregationSettings)
