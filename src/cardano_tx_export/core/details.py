"""Batched fetching of transaction details and UTXO sets."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from cardano_tx_export.core.cancel import CancelToken, check_cancelled
from cardano_tx_export.core.classifier import normalize_addresses, parse_transaction
from cardano_tx_export.core.models import Transaction
from cardano_tx_export.indexer.client import IndexerClient
from cardano_tx_export.indexer.errors import IndexerError
from cardano_tx_export.indexer.schemas import TxRef

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
# Twice the client's base throttle, on top of it
BATCH_DELAY = 0.2


@dataclass
class DetailFetchResult:
    transactions: list[Transaction] = field(default_factory=list)
    failed_count: int = 0


async def _fetch_one(
    client: IndexerClient,
    ref: TxRef,
    wallet_addresses: frozenset[str],
) -> Transaction | None:
    detail, utxos = await asyncio.gather(
        client.get_transaction(ref.tx_hash),
        client.get_transaction_utxos(ref.tx_hash),
        return_exceptions=True,
    )
    for outcome in (detail, utxos):
        if isinstance(outcome, IndexerError):
            logger.debug("Skipping %s: %s", ref.tx_hash, outcome)
            return None
        if isinstance(outcome, BaseException):
            raise outcome

    try:
        return parse_transaction(detail, utxos, ref, wallet_addresses)
    except ValueError as e:
        logger.debug("Skipping malformed transaction %s: %s", ref.tx_hash, e)
        return None


async def fetch_transaction_details(
    client: IndexerClient,
    tx_refs: Sequence[TxRef],
    wallet_addresses: Sequence[str],
    on_progress: Callable[[int, int], None] | None = None,
    cancel: CancelToken | None = None,
    batch_size: int = BATCH_SIZE,
    batch_delay: float = BATCH_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> DetailFetchResult:
    """
    Fetch and classify transactions in sequential, bounded-parallel batches.

    A failing item is counted and skipped; it never aborts its batch.

    Parameters
    ----------
    client : IndexerClient
        Indexer client
    tx_refs : Sequence[TxRef]
        Deduplicated references
    wallet_addresses : Sequence[str]
        Every address of the wallet
    on_progress : Callable[[int, int], None] | None
        Called after each batch with (processed, total)
    cancel : CancelToken | None
        Cancellation token checked before each batch
    batch_size : int
        Items fetched concurrently per batch
    batch_delay : float
        Pause between batches in seconds
    sleep : Callable[[float], Awaitable[None]]
        Async sleep used for the pause

    Returns
    -------
    DetailFetchResult
        Parsed transactions in reference order and the failure count

    """
    result = DetailFetchResult()
    addresses = normalize_addresses(wallet_addresses)
    total = len(tx_refs)

    for start in range(0, total, batch_size):
        check_cancelled(cancel)
        if start > 0:
            await sleep(batch_delay)

        batch = tx_refs[start : start + batch_size]
        parsed = await asyncio.gather(*(_fetch_one(client, ref, addresses) for ref in batch))

        for tx in parsed:
            if tx is None:
                result.failed_count += 1
            else:
                result.transactions.append(tx)

        if on_progress is not None:
            on_progress(min(start + batch_size, total), total)

    if result.failed_count:
        logger.warning("%d of %d transactions could not be fetched", result.failed_count, total)

    return result
