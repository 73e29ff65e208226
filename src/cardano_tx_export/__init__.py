"""Wallet transaction history export for Cardano via the Blockfrost indexer."""

from cardano_tx_export.core import CancelToken, ExportOptions, ExportProgress, ExportResult
from cardano_tx_export.core.exporter import TransactionExporter
from cardano_tx_export.indexer import IndexerClient

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "ExportOptions",
    "ExportProgress",
    "ExportResult",
    "IndexerClient",
    "TransactionExporter",
]
