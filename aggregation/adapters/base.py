"""Adapter abstraction, errors, and HTTP helpers."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
)

import feedparser
import httpx

from aggregation.settings import AggregationSettings, get_settings
from aggregation.utils.logging import get_logger

USER_AGENT = "note-intel/1.0 (news aggregator)"

RecordT = TypeVar("RecordT")


class ProviderError(Exception):
    """Base adapter error; never escapes ``BaseAdapter.fetch``."""


class ConfigurationAbsent(ProviderError):
    """Required credential is not configured."""


class MalformedPayload(ProviderError):
    """Upstream answered 2xx with a body we cannot interpret."""


@dataclass
class AdapterResult(Generic[RecordT]):
    provider: str
    records: List[RecordT] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.records)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse ISO-8601, RFC 822 or epoch seconds into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError):
            return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value is None or value == "":
        return default
    try:
        return float(str(value).replace("%", "").strip())
    except ValueError:
        return default


class BaseAdapter(ABC, Generic[RecordT]):
    """One external source for one domain.

    Subclasses implement ``_fetch_records``; ``fetch`` converts every expected
    failure into a skipped ``AdapterResult`` so callers only ever see data or a
    reason.
    """

    name: str
    credential_field: Optional[str] = None
    timeout_attr: str = "provider_timeout_seconds"

    def __init__(
        self,
        settings: Optional[AggregationSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._logger = get_logger(f"{__name__}.{self.name}")

    @property
    def settings(self) -> AggregationSettings:
        return self._settings

    @property
    def timeout(self) -> float:
        return float(getattr(self._settings, self.timeout_attr))

    def credential(self) -> Optional[str]:
        if self.credential_field is None:
            return None
        return self._settings.credential(self.credential_field)

    def is_configured(self) -> bool:
        return self.credential_field is None or self.credential() is not None

    async def fetch(self, terms: Sequence[str], limit: int = 10) -> AdapterResult[RecordT]:
        cleaned = [t.strip() for t in terms if t and t.strip()]
        if not cleaned or limit <= 0:
            return AdapterResult(self.name, skipped_reason="empty_query")
        extra = {"provider": self.name, "terms": cleaned[:5]}
        try:
            if not self.is_configured():
                raise ConfigurationAbsent(f"{self.credential_field} is not set")
            records = await self._fetch_records(cleaned, limit)
        except ConfigurationAbsent as exc:
            self._logger.info("adapter.skipped", extra={**extra, "reason": "not_configured", "error": str(exc)})
            return AdapterResult(self.name, skipped_reason="not_configured")
        except httpx.TimeoutException:
            self._logger.warning("adapter.timeout", extra={**extra, "timeout_s": self.timeout})
            return AdapterResult(self.name, skipped_reason="timeout")
        except httpx.HTTPError as exc:
            self._logger.warning("adapter.http_error", extra={**extra, "error": str(exc)})
            return AdapterResult(self.name, skipped_reason="http_error")
        except ProviderError as exc:
            self._logger.warning("adapter.provider_error", extra={**extra, "error": str(exc)})
            return AdapterResult(self.name, skipped_reason="provider_error")
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            # payload shape did not match what the adapter expects
            self._logger.warning("adapter.malformed_payload", extra={**extra, "error": repr(exc)})
            return AdapterResult(self.name, skipped_reason="provider_error")
        self._logger.debug("adapter.fetched", extra={**extra, "records": len(records)})
        if not records:
            return AdapterResult(self.name, skipped_reason="no_results")
        return AdapterResult(self.name, records=records)

    @abstractmethod
    async def _fetch_records(self, terms: List[str], limit: int) -> List[RecordT]:
        """Return normalized records; raise ProviderError/httpx errors on failure."""

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            yield client

    async def _get(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        resp = await client.get(url, params=params, headers=headers, timeout=self.timeout)
        if resp.status_code >= 400:
            raise ProviderError(f"{self.name} responded {resp.status_code}")
        return resp

    async def _get_json(self, client: httpx.AsyncClient, url: str, **kwargs: Any) -> Any:
        resp = await self._get(client, url, **kwargs)
        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedPayload(f"{self.name} returned invalid JSON") from exc

    async def _get_feed(self, client: httpx.AsyncClient, url: str, **kwargs: Any) -> List[Dict[str, Any]]:
        resp = await self._get(client, url, **kwargs)
        parsed = feedparser.parse(resp.text)
        if parsed.bozo and not parsed.entries:
            raise MalformedPayload(f"{self.name} returned an unreadable feed")
        return list(parsed.entries)

    def _normalize_each(
        self, items: Iterable[Any], normalize: Callable[[Any], Optional[RecordT]]
    ) -> List[RecordT]:
        records: List[RecordT] = []
        for item in items:
            try:
                record = normalize(item)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                self._logger.debug("adapter.item_dropped", extra={"provider": self.name, "error": str(exc)})
                continue
            if record is not None:
                records.append(record)
        return records

    async def _pause(self) -> None:
        delay_ms = self._settings.provider_call_delay_ms
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000.0)
