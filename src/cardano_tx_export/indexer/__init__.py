"""Indexer layer with rate limiting, retry policy, caching, and typed errors."""

from cardano_tx_export.indexer.cache import CacheEntry, ResponseCache
from cardano_tx_export.indexer.client import IndexerClient
from cardano_tx_export.indexer.errors import IndexerError, NotFoundError, RateLimitedError, UpstreamError
from cardano_tx_export.indexer.retry import RetryConfig
from cardano_tx_export.indexer.throttle import RateLimiter

__all__ = [
    "CacheEntry",
    "IndexerClient",
    "IndexerError",
    "NotFoundError",
    "RateLimitedError",
    "RateLimiter",
    "ResponseCache",
    "RetryConfig",
    "UpstreamError",
]
