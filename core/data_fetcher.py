"""
Data Fetcher for Pulse Terminal.
Fetches feed payloads and price snapshots concurrently with aiohttp.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import feedparser
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from storage.models import PriceQuote, RawFeedPayload
from core.settings import FeedSource, PipelineConfig

logger = logging.getLogger(__name__)


_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) PulseTerminal/1.0",
    "Accept": "application/json, application/rss+xml, application/xml;q=0.9, */*;q=0.8",
}

_RETRYABLE = (aiohttp.ClientError, asyncio.TimeoutError)


class FetchError(Exception):
    """Transport or parse failure talking to an external source."""


class FeedFetchError(FetchError):
    pass


class PriceFetchError(FetchError):
    pass


def parse_rss_items(text: str) -> List[Dict[str, Any]]:
    """Parse an RSS/Atom body into rss2json-shaped item dicts."""
    feed = feedparser.parse(text)
    if feed.bozo and not feed.entries:
        raise FeedFetchError(f"Unparseable feed: {feed.bozo_exception}")

    items = []
    for entry in feed.entries:
        items.append({
            "title": entry.get("title", ""),
            "description": entry.get("summary", "") or entry.get("description", ""),
            "pubDate": entry.get("published", "") or entry.get("updated", ""),
            "guid": entry.get("id", ""),
            "link": entry.get("link", ""),
        })
    return items


def parse_price_snapshot(data: Any) -> Dict[str, PriceQuote]:
    """Parse a price source body (asset id -> {usd, usd_24h_change, usd_24h_vol})."""
    if not isinstance(data, dict):
        return {}
    return {str(k): PriceQuote.from_api(str(k), v) for k, v in data.items()}


class DataFetcher:
    """
    Async client for the feed and price sources.

    Every request carries its own timeout; fan-out batches additionally
    stop waiting at the configured deadline and cancel the stragglers.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize data fetcher.

        Args:
            config: Pipeline configuration (timeouts, retries, endpoints)
            session: Shared aiohttp session; one is created lazily if omitted
        """
        self.config = config or PipelineConfig()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "DataFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=_HEADERS)
            self._owns_session = True
        return self._session

    async def _request(self, url: str, params: Optional[Dict[str, str]] = None) -> str:
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        async with self._get_session().get(url, params=params, timeout=timeout) as resp:
            resp.raise_for_status()
            return await resp.text()

    async def _get_text(self, url: str, params: Optional[Dict[str, str]] = None) -> str:
        """GET a URL, retrying transport errors per config.retry_attempts."""
        retryer = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.config.retry_attempts)),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(_RETRYABLE),
            reraise=True,
        )
        async for attempt in retryer:
            with attempt:
                return await self._request(url, params)

    # ========================
    # Feeds
    # ========================

    async def fetch_feed(self, source: FeedSource) -> Optional[RawFeedPayload]:
        """
        Fetch one provider's feed.

        Args:
            source: FeedSource to fetch

        Returns:
            RawFeedPayload, or None when the fetch or parse failed
        """
        logger.info(f"Fetching {source.name} feed")

        try:
            body = await self._get_text(source.url)

            if source.format == "rss":
                payload = RawFeedPayload(source.name, parse_rss_items(body), source.kind)
            else:
                data = json.loads(body)
                if isinstance(data, dict) and data.get("status") not in (None, "ok"):
                    logger.warning(f"{source.name} feed status: {data.get('status')} {data.get('message', '')}")
                payload = RawFeedPayload.from_json(source.name, data, source.kind)

        except Exception as e:
            logger.error(f"Error fetching {source.name} feed: {e}")
            return None

        logger.info(f"{source.name}: {len(payload.items)} items")
        return payload

    async def fetch_all_feeds(
        self,
        sources: Optional[Sequence[FeedSource]] = None,
    ) -> List[Optional[RawFeedPayload]]:
        """
        Fetch all enabled feeds concurrently.

        Args:
            sources: Feed sources (default: config.feeds)

        Returns:
            One entry per enabled source, None where the source failed or
            missed the batch deadline
        """
        sources = [s for s in (sources if sources is not None else self.config.feeds) if s.enabled]
        if not sources:
            return []

        tasks = [asyncio.ensure_future(self.fetch_feed(s)) for s in sources]
        done, pending = await asyncio.wait(tasks, timeout=self.config.batch_deadline)

        for source, task in zip(sources, tasks):
            if task in pending:
                logger.warning(f"{source.name} feed missed the {self.config.batch_deadline}s deadline, cancelling")
                task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results: List[Optional[RawFeedPayload]] = []
        for task in tasks:
            if task in done and not task.cancelled() and task.exception() is None:
                results.append(task.result())
            else:
                results.append(None)

        logger.info(f"Feed batch complete: {sum(1 for r in results if r)}/{len(sources)} sources ok")
        return results

    # ========================
    # Prices
    # ========================

    async def fetch_prices(
        self,
        asset_ids: Sequence[str],
        include_volume: bool = False,
    ) -> Dict[str, PriceQuote]:
        """
        Fetch a price snapshot for several assets in one request.

        Args:
            asset_ids: Price source asset ids
            include_volume: Also request 24h volume

        Returns:
            Dict mapping asset id to PriceQuote (assets missing upstream are absent)

        Raises:
            PriceFetchError: transport, timeout or parse failure
        """
        ids = list(dict.fromkeys(asset_ids))
        if not ids:
            return {}

        params = {
            "ids": ",".join(ids),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }
        if include_volume:
            params["include_24hr_vol"] = "true"

        url = f"{self.config.price_api_url}/simple/price"
        logger.info(f"Fetching prices for {len(ids)} assets")

        try:
            body = await self._get_text(url, params)
            data = json.loads(body)
        except Exception as e:
            raise PriceFetchError(f"Price request failed for {params['ids']}: {e}") from e

        if not isinstance(data, dict):
            raise PriceFetchError(f"Unexpected price payload type: {type(data).__name__}")

        quotes = parse_price_snapshot(data)
        return {asset_id: quotes[asset_id] for asset_id in ids if asset_id in quotes}

    async def fetch_macro_prices(self) -> Dict[str, PriceQuote]:
        """Fetch change and volume for the two macro reference assets."""
        return await self.fetch_prices(
            [self.config.base_asset, self.config.platform_asset],
            include_volume=True,
        )
