"""CSV rendering of export records with exact amounts and formula escaping."""

import csv
import io
import re
from collections.abc import Iterable
from datetime import UTC, datetime

from cardano_tx_export.core.models import NATIVE_ASSET, Transaction, TransactionType

CSV_HEADERS = [
    "Date",
    "Type",
    "Asset",
    "Amount",
    "Fee",
    "Transaction Hash",
    "Block",
    "Notes",
]

# Decimal places per asset unit; tokens without known metadata render raw
ASSET_DECIMALS = {NATIVE_ASSET: 6}

FORMULA_TRIGGERS = ("=", "+", "-", "@", "\t", "|")
_NUMERIC = re.compile(r"-?\d+(?:\.\d+)?")


def decimals_for(asset: str) -> int:
    """Decimal scale used to render an asset's quantities."""
    return ASSET_DECIMALS.get(asset, 0)


def format_amount(quantity: str | int, decimals: int) -> str:
    """
    Render an integer quantity as a fixed-point decimal string.

    Uses integer division only, so values far beyond 2**53 keep every digit.

    Parameters
    ----------
    quantity : str | int
        Integer quantity in base units (e.g., lovelace)
    decimals : int
        Decimal scale of the asset

    Returns
    -------
    str
        Signed fixed-point string with exactly ``decimals`` fractional digits

    Examples
    --------
    >>> format_amount("-50000000", 6)
    '-50.000000'

    """
    value = int(quantity)
    if decimals == 0:
        return str(value)
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    return f"{sign}{whole}.{fraction:0{decimals}d}"


def parse_amount(text: str, decimals: int) -> int:
    """
    Parse a fixed-point decimal string back to base units.

    Parameters
    ----------
    text : str
        Output of format_amount
    decimals : int
        Decimal scale of the asset

    Returns
    -------
    int
        Integer quantity

    Raises
    ------
    ValueError
        If the text is not a number or has more fractional digits than
        ``decimals``

    """
    negative = text.startswith("-")
    whole, _, fraction = text.removeprefix("-").partition(".")
    if len(fraction) > decimals:
        msg = f"{text!r} has more than {decimals} fractional digits"
        raise ValueError(msg)
    value = int(whole) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    return -value if negative else value


def escape_field(field: str) -> str:
    """
    Neutralize spreadsheet formulas in a value.

    Non-numeric values starting with a formula trigger get a leading quote
    mark; plain numbers (including negatives) are left alone. Delimiter and
    quote handling is left to the csv writer.

    Parameters
    ----------
    field : str
        Raw value

    Returns
    -------
    str
        Value safe to open in a spreadsheet

    """
    if field.startswith(FORMULA_TRIGGERS) and not _NUMERIC.fullmatch(field):
        return "'" + field
    return field


def format_timestamp(value: datetime) -> str:
    """ISO 8601 UTC timestamp with a Z suffix."""
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def generate_notes(tx: Transaction) -> str:
    """Free-text notes column for a record."""
    notes: list[str] = []

    if tx.type == TransactionType.STAKE_REWARD and tx.pool_id:
        notes.append(f"Pool: {tx.pool_id[:10]}...")

    return "; ".join(notes)


def transaction_row(tx: Transaction) -> list[str]:
    """Unescaped column values for one record."""
    return [
        format_timestamp(tx.timestamp),
        tx.type.value,
        tx.asset_ticker or tx.asset,
        format_amount(tx.net_amount, decimals_for(tx.asset)),
        format_amount(tx.fee, decimals_for(NATIVE_ASSET)) if tx.fee else "",
        tx.tx_hash,
        str(tx.block_height),
        generate_notes(tx),
    ]


def generate_report(transactions: Iterable[Transaction]) -> str:
    """
    Render records as CSV text in the given order.

    Parameters
    ----------
    transactions : Iterable[Transaction]
        Records, usually already filtered and sorted

    Returns
    -------
    str
        Header line plus one line per record, joined with newlines. Fields
        holding a delimiter, quote or line break are quoted.

    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for tx in transactions:
        writer.writerow([escape_field(value) for value in transaction_row(tx)])
    return buffer.getvalue().removesuffix("\n")


def report_filename(now: datetime | None = None) -> str:
    """
    Deterministic report file name for an export time.

    Parameters
    ----------
    now : datetime | None
        Export time. Current UTC time if None.

    Returns
    -------
    str
        e.g. ``cardano-transactions-2024-05-01T12-30-00-000Z.csv``

    """
    now = (now or datetime.now(UTC)).astimezone(UTC)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S") + f"-{now.microsecond // 1000:03d}Z"
    return f"cardano-transactions-{stamp}.csv"
