"""Core functionality including models, discovery, classification, and filtering."""

from cardano_tx_export.core.cancel import CancelToken, ExportCancelledError
from cardano_tx_export.core.classifier import classify, parse_transaction
from cardano_tx_export.core.discovery import collect_tx_refs, dedupe_tx_refs, expand_addresses
from cardano_tx_export.core.filters import filter_transactions
from cardano_tx_export.core.models import (
    AssetFilter,
    DateRange,
    ExporterSettings,
    ExportOptions,
    ExportPhase,
    ExportProgress,
    ExportResult,
    GenesisConstants,
    Transaction,
    TransactionAmount,
    TransactionType,
)
from cardano_tx_export.core.rewards import collect_rewards, epoch_to_timestamp
from cardano_tx_export.indexer.schemas import TxRef

__all__ = [
    "AssetFilter",
    "CancelToken",
    "DateRange",
    "ExportCancelledError",
    "ExportOptions",
    "ExportPhase",
    "ExportProgress",
    "ExportResult",
    "ExporterSettings",
    "GenesisConstants",
    "Transaction",
    "TransactionAmount",
    "TransactionType",
    "TxRef",
    "classify",
    "collect_rewards",
    "collect_tx_refs",
    "dedupe_tx_refs",
    "epoch_to_timestamp",
    "expand_addresses",
    "filter_transactions",
    "parse_transaction",
]
