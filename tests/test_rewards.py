"""Tests for staking reward collection."""

import pytest

from cardano_tx_export.core import GenesisConstants, collect_rewards, epoch_to_timestamp
from cardano_tx_export.core.models import TransactionType
from cardano_tx_export.core.rewards import reward_hash


def test_epoch_to_timestamp_at_start_epoch():
    """Test that the start epoch maps to the start timestamp."""
    assert epoch_to_timestamp(208) == 1596059091
    assert epoch_to_timestamp(209) == 1596059091 + 432000


def test_epoch_to_timestamp_is_strictly_increasing():
    """Test monotonicity across a wide epoch range."""
    times = [epoch_to_timestamp(e) for e in range(0, 600, 7)]

    assert all(a < b for a, b in zip(times, times[1:]))


def test_epoch_to_timestamp_custom_genesis():
    """Test conversion with non-mainnet constants."""
    genesis = GenesisConstants(start_timestamp=1000, epoch_length_seconds=100, start_epoch=10)

    assert epoch_to_timestamp(12, genesis) == 1200


def test_reward_hash_is_synthetic():
    """Test that reward hashes cannot collide with hex transaction hashes."""
    assert reward_hash(450) == "reward_epoch_450"


@pytest.mark.asyncio
async def test_collects_rewards(indexer, client):
    """Test reward records built from indexer entries."""
    indexer.ok(
        "/accounts/stake_x/rewards?page=1",
        [
            {"epoch": 400, "amount": "1500000", "pool_id": "pool1abcdefghijklmnop", "type": "member"},
            {"epoch": 401, "amount": "1600000", "pool_id": "pool1abcdefghijklmnop", "type": "member"},
        ],
    )

    rewards = await collect_rewards(client, "stake_x")

    assert [r.tx_hash for r in rewards] == ["reward_epoch_400", "reward_epoch_401"]
    first = rewards[0]
    assert first.type == TransactionType.STAKE_REWARD
    assert first.net_amount == "1500000"
    assert first.fee is None
    assert first.block_height == 0
    assert first.block_time == epoch_to_timestamp(400)
    assert first.pool_id == "pool1abcdefghijklmnop"
    assert first.stake_address == "stake_x"
    assert first.asset_ticker == "ADA"


@pytest.mark.asyncio
async def test_pages_through_rewards(indexer, client):
    """Test that full pages lead to the next page."""
    indexer.ok("/accounts/stake_x/rewards?page=1", [{"epoch": 300, "amount": "1", "pool_id": "pool1"}])
    indexer.ok("/accounts/stake_x/rewards?page=2", [])

    rewards = await collect_rewards(client, "stake_x", page_size=1)

    assert len(rewards) == 1
    assert indexer.count("/accounts/stake_x/rewards") == 2


@pytest.mark.asyncio
async def test_account_never_staked(indexer, client):
    """Test that a 404 yields no rewards."""
    assert await collect_rewards(client, "stake_new") == []


@pytest.mark.asyncio
async def test_same_epoch_entries_become_one_record(indexer, client):
    """Test that member and leader rewards for one epoch are summed into a single record."""
    indexer.ok(
        "/accounts/stake_x/rewards?page=1",
        [
            {"epoch": 400, "amount": "1500000", "pool_id": "pool1member", "type": "member"},
            {"epoch": 401, "amount": "7", "pool_id": "pool1member", "type": "member"},
            {"epoch": 400, "amount": str(2**63), "pool_id": "pool1leader", "type": "leader"},
        ],
    )

    rewards = await collect_rewards(client, "stake_x")

    assert [r.tx_hash for r in rewards] == ["reward_epoch_400", "reward_epoch_401"]
    assert rewards[0].net_amount == str(1500000 + 2**63)
    assert rewards[0].pool_id == "pool1member"
    assert rewards[1].net_amount == "7"
