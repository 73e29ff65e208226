"""Tests for batched transaction detail fetching."""

import pytest

from cardano_tx_export.core import CancelToken, ExportCancelledError
from cardano_tx_export.core.details import fetch_transaction_details
from cardano_tx_export.core.models import TransactionType
from cardano_tx_export.indexer.schemas import TxRef

WALLET = ["addr_wallet"]


def _register(indexer, count: int) -> list[TxRef]:
    refs = []
    for i in range(count):
        tx_hash = f"tx_{i}"
        indexer.add_transaction(tx_hash, 1_700_000_000 + i, [("addr_other", 2_000_000)], [("addr_wallet", 1_000_000)])
        refs.append(TxRef(tx_hash=tx_hash, block_time=1_700_000_000 + i))
    return refs


@pytest.mark.asyncio
async def test_fetches_in_batches(indexer, client, fake_sleep, sleeps):
    """Test batching, inter-batch pauses and per-batch progress."""
    refs = _register(indexer, 5)
    progress: list[tuple[int, int]] = []

    result = await fetch_transaction_details(
        client,
        refs,
        WALLET,
        on_progress=lambda current, total: progress.append((current, total)),
        batch_size=2,
        batch_delay=0.2,
        sleep=fake_sleep,
    )

    assert [tx.tx_hash for tx in result.transactions] == [r.tx_hash for r in refs]
    assert result.failed_count == 0
    assert progress == [(2, 5), (4, 5), (5, 5)]
    assert sleeps == [0.2, 0.2]
    assert all(tx.type == TransactionType.RECEIVE for tx in result.transactions)


@pytest.mark.asyncio
async def test_failed_item_is_counted_not_fatal(indexer, client, fake_sleep):
    """Test that one failing transaction does not abort its batch."""
    refs = _register(indexer, 3)
    indexer.add("/txs/tx_1", (500, {}))

    result = await fetch_transaction_details(client, refs, WALLET, batch_size=10, sleep=fake_sleep)

    assert result.failed_count == 1
    assert [tx.tx_hash for tx in result.transactions] == ["tx_0", "tx_2"]


@pytest.mark.asyncio
async def test_missing_utxos_count_as_failure(indexer, client, fake_sleep):
    """Test that a transaction without its UTXO set is skipped."""
    refs = _register(indexer, 2)
    del indexer.routes["/txs/tx_0/utxos"]

    result = await fetch_transaction_details(client, refs, WALLET, sleep=fake_sleep)

    assert result.failed_count == 1
    assert len(result.transactions) == 1


@pytest.mark.asyncio
async def test_empty_input(client, fake_sleep):
    """Test that no references means no requests."""
    result = await fetch_transaction_details(client, [], WALLET, sleep=fake_sleep)

    assert result.transactions == []
    assert result.failed_count == 0


@pytest.mark.asyncio
async def test_cancellation_between_batches(indexer, client, fake_sleep):
    """Test that cancelling after the first batch stops before the second."""
    refs = _register(indexer, 4)
    token = CancelToken()

    with pytest.raises(ExportCancelledError):
        await fetch_transaction_details(
            client,
            refs,
            WALLET,
            on_progress=lambda current, total: token.cancel(),
            cancel=token,
            batch_size=2,
            sleep=fake_sleep,
        )

    assert indexer.count("/txs/tx_2") == 0
    assert indexer.count("/txs/tx_0") == 2
