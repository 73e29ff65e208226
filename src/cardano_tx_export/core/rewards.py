"""Staking reward collection and epoch-to-time approximation."""

import logging

from cardano_tx_export.core.cancel import CancelToken, check_cancelled
from cardano_tx_export.core.models import (
    NATIVE_ASSET,
    NATIVE_TICKER,
    REWARD_HASH_PREFIX,
    GenesisConstants,
    Transaction,
    TransactionType,
    timestamp_from_unix,
)
from cardano_tx_export.indexer.client import IndexerClient
from cardano_tx_export.indexer.errors import NotFoundError
from cardano_tx_export.indexer.schemas import AccountReward

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_PAGES = 100


def epoch_to_timestamp(epoch: int, genesis: GenesisConstants | None = None) -> int:
    """
    Approximate the Unix start time of an epoch.

    Assumes a fixed epoch length for the whole chain history, so the result
    is exact only for networks whose parameters match ``genesis``.

    Parameters
    ----------
    epoch : int
        Epoch number
    genesis : GenesisConstants | None
        Network constants. Mainnet values are used if None.

    Returns
    -------
    int
        Unix seconds

    """
    genesis = genesis or GenesisConstants()
    return genesis.start_timestamp + (epoch - genesis.start_epoch) * genesis.epoch_length_seconds


def reward_hash(epoch: int) -> str:
    """Synthetic hash for a reward record, outside the on-chain hash space."""
    return f"{REWARD_HASH_PREFIX}{epoch}"


def merge_epoch_rewards(rewards: list[AccountReward]) -> list[AccountReward]:
    """
    Combine reward entries that share an epoch.

    The indexer returns one entry per reward type, such as member and leader,
    so an epoch can appear more than once. Amounts are summed exactly and the
    first pool id seen for the epoch is kept.

    Parameters
    ----------
    rewards : list[AccountReward]
        Entries in indexer order

    Returns
    -------
    list[AccountReward]
        One entry per epoch, in first-seen order

    """
    merged: dict[int, AccountReward] = {}
    for reward in rewards:
        current = merged.get(reward.epoch)
        if current is None:
            merged[reward.epoch] = reward
            continue
        merged[reward.epoch] = current.model_copy(
            update={"amount": str(int(current.amount) + int(reward.amount)), "type": None}
        )
    return list(merged.values())


def reward_to_transaction(
    reward: AccountReward,
    stake_address: str,
    genesis: GenesisConstants | None = None,
) -> Transaction:
    """Build the export record for one reward entry."""
    block_time = epoch_to_timestamp(reward.epoch, genesis)
    return Transaction(
        tx_hash=reward_hash(reward.epoch),
        block_height=0,
        block_time=block_time,
        timestamp=timestamp_from_unix(block_time),
        type=TransactionType.STAKE_REWARD,
        net_amount=reward.amount,
        asset=NATIVE_ASSET,
        asset_ticker=NATIVE_TICKER,
        pool_id=reward.pool_id,
        stake_address=stake_address,
    )


async def collect_rewards(
    client: IndexerClient,
    stake_address: str,
    genesis: GenesisConstants | None = None,
    cancel: CancelToken | None = None,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
) -> list[Transaction]:
    """
    Fetch every staking reward of a stake key as export records.

    Parameters
    ----------
    client : IndexerClient
        Indexer client
    stake_address : str
        Stake key
    genesis : GenesisConstants | None
        Network constants for the epoch timestamps
    cancel : CancelToken | None
        Cancellation token checked before each page
    page_size : int
        Indexer page size
    max_pages : int
        Hard page ceiling

    Returns
    -------
    list[Transaction]
        One stake_reward record per reward-bearing epoch; empty for
        accounts that never staked

    """
    rewards: list[AccountReward] = []

    for page in range(1, max_pages + 1):
        check_cancelled(cancel)
        try:
            batch = await client.get_account_rewards(stake_address, page)
        except NotFoundError:
            break

        rewards.extend(batch)
        if len(batch) < page_size:
            break

    logger.debug("Found %d reward entries for %s", len(rewards), stake_address)
    return [reward_to_transaction(r, stake_address, genesis) for r in merge_epoch_rewards(rewards)]
