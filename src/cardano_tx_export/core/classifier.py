"""Classification of raw indexer transactions into wallet-relative records."""

from collections.abc import Iterable

from cardano_tx_export.core.models import (
    NATIVE_ASSET,
    NATIVE_TICKER,
    Transaction,
    TransactionAmount,
    TransactionType,
    timestamp_from_unix,
)
from cardano_tx_export.indexer.schemas import TxDetail, TxRef, TxUtxos, UtxoEntry


def normalize_addresses(addresses: Iterable[str]) -> frozenset[str]:
    """Build the case-insensitive wallet address set used for matching."""
    return frozenset(a.lower() for a in addresses)


def classify(is_input: bool, is_output: bool) -> TransactionType:
    """
    Derive the transaction type from where the wallet appears.

    A self-transfer (wallet on both sides) counts as a send because the
    wallet pays the fee.

    Parameters
    ----------
    is_input : bool
        Wallet owns at least one input
    is_output : bool
        Wallet owns at least one output

    Returns
    -------
    TransactionType
        send, receive or unknown

    """
    if is_input:
        return TransactionType.SEND
    if is_output:
        return TransactionType.RECEIVE
    return TransactionType.UNKNOWN


def net_amount(utxos: TxUtxos, wallet_addresses: frozenset[str], asset: str = NATIVE_ASSET) -> int:
    """
    Net change of one asset for the wallet.

    Parameters
    ----------
    utxos : TxUtxos
        Transaction inputs and outputs
    wallet_addresses : frozenset[str]
        Lower-cased wallet addresses
    asset : str
        Asset unit to sum

    Returns
    -------
    int
        Wallet outputs minus wallet inputs; positive means inflow

    """
    received = sum(o.quantity_of(asset) for o in utxos.outputs if o.address.lower() in wallet_addresses)
    sent = sum(i.quantity_of(asset) for i in utxos.inputs if i.address.lower() in wallet_addresses)
    return received - sent


def _amounts(entries: list[UtxoEntry]) -> tuple[TransactionAmount, ...]:
    return tuple(
        TransactionAmount(address=e.address, amount=str(e.quantity_of(NATIVE_ASSET)), asset=NATIVE_ASSET)
        for e in entries
    )


def parse_transaction(
    detail: TxDetail,
    utxos: TxUtxos,
    ref: TxRef,
    wallet_addresses: frozenset[str],
) -> Transaction:
    """
    Build the export record for one on-chain transaction.

    Parameters
    ----------
    detail : TxDetail
        Transaction detail (hash, block, fee)
    utxos : TxUtxos
        Transaction inputs and outputs
    ref : TxRef
        Discovery reference supplying the block time
    wallet_addresses : frozenset[str]
        Lower-cased wallet addresses

    Returns
    -------
    Transaction
        Lovelace-denominated record

    """
    is_input = any(i.address.lower() in wallet_addresses for i in utxos.inputs)
    is_output = any(o.address.lower() in wallet_addresses for o in utxos.outputs)

    return Transaction(
        tx_hash=detail.hash,
        block_height=detail.block_height,
        block_time=ref.block_time,
        timestamp=timestamp_from_unix(ref.block_time),
        type=classify(is_input, is_output),
        inputs=_amounts(utxos.inputs),
        outputs=_amounts(utxos.outputs),
        net_amount=str(net_amount(utxos, wallet_addresses)),
        asset=NATIVE_ASSET,
        asset_ticker=NATIVE_TICKER,
        # The wallet only pays the fee when it spends an input
        fee=detail.fees if is_input else None,
    )
