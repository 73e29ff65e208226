"""Filtering and ordering of export records."""

from collections.abc import Iterable

from cardano_tx_export.core.models import AssetFilter, ExportOptions, Transaction, TransactionType


def filter_transactions(transactions: Iterable[Transaction], options: ExportOptions) -> list[Transaction]:
    """
    Apply the user's export options and order newest first.

    Parameters
    ----------
    transactions : Iterable[Transaction]
        Candidate records (not modified)
    options : ExportOptions
        Date bounds (inclusive), reward inclusion and asset filter

    Returns
    -------
    list[Transaction]
        Matching records sorted by timestamp descending; ties keep their
        input order

    """
    filtered = list(transactions)

    if options.start_date is not None:
        filtered = [tx for tx in filtered if tx.timestamp >= options.start_date]

    if options.end_date is not None:
        filtered = [tx for tx in filtered if tx.timestamp <= options.end_date]

    if not options.include_staking_rewards:
        filtered = [tx for tx in filtered if tx.type != TransactionType.STAKE_REWARD]

    if options.asset_filter == AssetFilter.ADA_ONLY:
        filtered = [tx for tx in filtered if tx.is_native]
    elif options.asset_filter == AssetFilter.TOKENS:
        filtered = [tx for tx in filtered if not tx.is_native]

    filtered.sort(key=lambda tx: tx.timestamp, reverse=True)
    return filtered
