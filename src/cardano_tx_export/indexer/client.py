"""Async client for the Blockfrost blockchain indexing API."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from cardano_tx_export.indexer.cache import ResponseCache
from cardano_tx_export.indexer.errors import NotFoundError, RateLimitedError, UpstreamError
from cardano_tx_export.indexer.retry import RetryConfig
from cardano_tx_export.indexer.schemas import AccountAddress, AccountReward, TxDetail, TxRef, TxUtxos
from cardano_tx_export.indexer.throttle import RateLimiter

logger = logging.getLogger(__name__)

_TX_REFS = TypeAdapter(list[TxRef])
_ADDRESSES = TypeAdapter(list[AccountAddress])
_REWARDS = TypeAdapter(list[AccountReward])


class IndexerClient:
    """
    Client for the Blockfrost REST API.

    Every request waits on the shared rate limiter first. HTTP 429 responses
    are retried with exponential backoff; 404 raises NotFoundError and any
    other failure raises UpstreamError.

    Parameters
    ----------
    project_id : str
        Blockfrost project credential
    base_url : str
        API base URL
    timeout : float
        Request timeout in seconds
    rate_limiter : RateLimiter | None
        Shared throttle. A new 100 ms limiter is created if None.
    retry_config : RetryConfig | None
        Backoff policy for rate-limited requests
    cache : ResponseCache | None
        Optional cache of successful responses
    transport : httpx.AsyncBaseTransport | None
        Custom transport (used by tests to simulate the indexer)
    sleep : Callable[[float], Awaitable[None]]
        Async sleep used for backoff

    """

    BASE_URL = "https://cardano-mainnet.blockfrost.io/api/v0"

    def __init__(
        self,
        project_id: str,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        rate_limiter: RateLimiter | None = None,
        retry_config: RetryConfig | None = None,
        cache: ResponseCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url
        self.rate_limiter = rate_limiter or RateLimiter()
        self.retry_config = retry_config or RetryConfig()
        self.cache = cache
        self._sleep = sleep
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"project_id": project_id},
            transport=transport,
        )

    async def get(self, path: str) -> Any:
        """
        Fetch and decode a JSON resource.

        Parameters
        ----------
        path : str
            Path relative to the base URL, including any query string

        Returns
        -------
        Any
            Decoded JSON body

        Raises
        ------
        NotFoundError
            On HTTP 404
        RateLimitedError
            When HTTP 429 persists past the retry budget
        UpstreamError
            On any other non-2xx status or transport failure

        """
        if self.cache is not None:
            cached = self.cache.get(path)
            if cached is not None:
                return cached

        for attempt in range(self.retry_config.max_attempts):
            await self.rate_limiter.acquire()

            try:
                response = await self.client.get(path)
            except httpx.TimeoutException as e:
                raise UpstreamError(path, detail=f"Request timeout: {e}") from e
            except httpx.HTTPError as e:
                raise UpstreamError(path, detail=f"HTTP request failed: {e}") from e

            if response.status_code == 429:
                # Don't retry on last attempt
                if attempt == self.retry_config.max_retries:
                    break

                delay = self.retry_config.get_delay(attempt)
                logger.debug(
                    "Rate limited on %s (attempt %d/%d), retrying in %.2fs",
                    path,
                    attempt + 1,
                    self.retry_config.max_attempts,
                    delay,
                )
                await self._sleep(delay)
                continue

            if response.status_code == 404:
                raise NotFoundError(path)

            if not response.is_success:
                raise UpstreamError(path, status_code=response.status_code)

            try:
                data = response.json()
            except ValueError as e:
                raise UpstreamError(path, detail=f"Invalid JSON from {path}") from e

            if self.cache is not None:
                self.cache.set(path, data)
            return data

        logger.debug("Giving up on %s after %d rate-limited attempts", path, self.retry_config.max_attempts)
        raise RateLimitedError(path, self.retry_config.max_attempts)

    async def _get_typed(self, path: str, adapter: TypeAdapter) -> Any:
        data = await self.get(path)
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            raise UpstreamError(path, detail=f"Unexpected response shape: {e}") from e

    async def get_address_transactions(self, address: str, page: int) -> list[TxRef]:
        """Fetch one newest-first page of transaction references for an address."""
        path = f"/addresses/{address}/transactions?page={page}&order=desc"
        return await self._get_typed(path, _TX_REFS)

    async def get_transaction(self, tx_hash: str) -> TxDetail:
        """Fetch transaction detail (block, time, fee)."""
        return await self._get_typed(f"/txs/{tx_hash}", TypeAdapter(TxDetail))

    async def get_transaction_utxos(self, tx_hash: str) -> TxUtxos:
        """Fetch the inputs and outputs of a transaction."""
        return await self._get_typed(f"/txs/{tx_hash}/utxos", TypeAdapter(TxUtxos))

    async def get_account_addresses(self, stake_address: str, page: int) -> list[AccountAddress]:
        """Fetch one page of payment addresses under a stake key."""
        return await self._get_typed(f"/accounts/{stake_address}/addresses?page={page}", _ADDRESSES)

    async def get_account_rewards(self, stake_address: str, page: int) -> list[AccountReward]:
        """Fetch one page of staking rewards for a stake key."""
        return await self._get_typed(f"/accounts/{stake_address}/rewards?page={page}", _REWARDS)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "IndexerClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()
