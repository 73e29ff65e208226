"""Wallet address expansion and transaction hash discovery."""

import logging
from collections.abc import Callable, Iterable

from cardano_tx_export.core.cancel import CancelToken, ExportCancelledError, check_cancelled
from cardano_tx_export.indexer.client import IndexerClient
from cardano_tx_export.indexer.errors import NotFoundError
from cardano_tx_export.indexer.schemas import TxRef

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_PAGES = 100


async def expand_addresses(
    client: IndexerClient,
    wallet_address: str,
    stake_address: str | None,
    cancel: CancelToken | None = None,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
) -> tuple[list[str], str | None]:
    """
    Resolve every payment address under a stake key.

    Parameters
    ----------
    client : IndexerClient
        Indexer client
    wallet_address : str
        Address supplied by the caller; always part of the result
    stake_address : str | None
        Stake key to expand. Without one only wallet_address is returned.
    cancel : CancelToken | None
        Cancellation token checked before each page
    page_size : int
        Indexer page size
    max_pages : int
        Hard page ceiling

    Returns
    -------
    tuple[list[str], str | None]
        Ordered unique addresses, and a warning if expansion degraded to the
        single wallet address

    """
    if not stake_address:
        return [wallet_address], None

    addresses = [wallet_address]
    seen = {wallet_address}

    try:
        for page in range(1, max_pages + 1):
            check_cancelled(cancel)
            try:
                batch = await client.get_account_addresses(stake_address, page)
            except NotFoundError:
                break

            for entry in batch:
                if entry.address not in seen:
                    seen.add(entry.address)
                    addresses.append(entry.address)

            if len(batch) < page_size:
                break
    except ExportCancelledError:
        raise
    except Exception as e:
        logger.warning("Address expansion for %s failed: %s", stake_address, e)
        warning = f"could not fetch all wallet addresses ({e}); export may be incomplete"
        return [wallet_address], warning

    logger.debug("Stake key %s controls %d addresses", stake_address, len(addresses))
    return addresses, None


async def collect_tx_refs(
    client: IndexerClient,
    address: str,
    on_progress: Callable[[int], None] | None = None,
    cancel: CancelToken | None = None,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
) -> list[TxRef]:
    """
    Page through all transaction references of one address, newest first.

    Parameters
    ----------
    client : IndexerClient
        Indexer client
    address : str
        Payment address
    on_progress : Callable[[int], None] | None
        Called after each page with the cumulative count for this address
    cancel : CancelToken | None
        Cancellation token checked before each page
    page_size : int
        Indexer page size; a shorter page marks the end of data
    max_pages : int
        Hard page ceiling

    Returns
    -------
    list[TxRef]
        References in upstream (newest-first) order

    Raises
    ------
    IndexerError
        Any failure other than NotFound

    """
    refs: list[TxRef] = []

    for page in range(1, max_pages + 1):
        check_cancelled(cancel)
        try:
            batch = await client.get_address_transactions(address, page)
        except NotFoundError:
            # Unused address on the first page, end of data on later ones
            break

        refs.extend(batch)
        if on_progress is not None:
            on_progress(len(refs))

        if len(batch) < page_size:
            break
    else:
        logger.warning("Stopped paging %s at the %d page limit", address, max_pages)

    return refs


def dedupe_tx_refs(ref_lists: Iterable[Iterable[TxRef]]) -> list[TxRef]:
    """
    Merge per-address reference lists, keeping the first occurrence of each hash.

    Parameters
    ----------
    ref_lists : Iterable[Iterable[TxRef]]
        One ordered list per address

    Returns
    -------
    list[TxRef]
        Unique references in first-seen order

    """
    seen: set[str] = set()
    unique: list[TxRef] = []
    for refs in ref_lists:
        for ref in refs:
            if ref.tx_hash not in seen:
                seen.add(ref.tx_hash)
                unique.append(ref)
    return unique
