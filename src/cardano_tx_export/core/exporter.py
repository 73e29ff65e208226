"""Export orchestrator sequencing discovery, detail fetching, filtering, and rendering."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime

from cardano_tx_export.core.cancel import CancelToken, ExportCancelledError
from cardano_tx_export.core.details import fetch_transaction_details
from cardano_tx_export.core.discovery import collect_tx_refs, dedupe_tx_refs, expand_addresses
from cardano_tx_export.core.filters import filter_transactions
from cardano_tx_export.core.models import (
    DateRange,
    ExporterSettings,
    ExportOptions,
    ExportPhase,
    ExportProgress,
    ExportResult,
    Transaction,
)
from cardano_tx_export.core.rewards import collect_rewards
from cardano_tx_export.indexer.client import IndexerClient
from cardano_tx_export.indexer.errors import IndexerError, RateLimitedError
from cardano_tx_export.indexer.schemas import TxRef
from cardano_tx_export.report.csv_writer import generate_report, report_filename

logger = logging.getLogger(__name__)

NO_TRANSACTIONS = "No transactions found for this wallet"
NO_MATCHES = "No transactions match the selected filters"
CANCELLED = "Export cancelled"

ProgressCallback = Callable[[ExportProgress], None]

_DONE = object()


class TransactionExporter:
    """
    Runs a wallet transaction history export end to end.

    Workflow:
    1. Expand the stake key into payment addresses
    2. Collect transaction references for every address concurrently
    3. Deduplicate references across addresses
    4. Fetch and classify transaction details in batches
    5. Collect staking rewards (optional)
    6. Filter, sort and render the CSV report

    Every outcome, including failures, is returned as an ExportResult.

    Parameters
    ----------
    client : IndexerClient
        Indexer client shared by all stages
    settings : ExporterSettings | None
        Paging, batching and genesis configuration
    sleep : Callable[[float], Awaitable[None]]
        Async sleep used for the inter-batch pause
    now : Callable[[], datetime]
        Clock used to name the report

    """

    def __init__(
        self,
        client: IndexerClient,
        settings: ExporterSettings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.client = client
        self.settings = settings or ExporterSettings()
        self._sleep = sleep
        self._now = now
        self.progress = ExportProgress(phase=ExportPhase.FETCHING)

    async def run(
        self,
        wallet_address: str,
        stake_address: str | None = None,
        options: ExportOptions | None = None,
        on_progress: ProgressCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> ExportResult:
        """
        Export the transaction history of a wallet.

        Parameters
        ----------
        wallet_address : str
            Address supplied by the user
        stake_address : str | None
            Stake key of the wallet, used for address expansion and rewards
        options : ExportOptions | None
            Export filters. Defaults include everything.
        on_progress : ProgressCallback | None
            Receives a progress snapshot at every step
        cancel : CancelToken | None
            Token that stops the export at its next suspension point

        Returns
        -------
        ExportResult
            Success with the rendered report, or failure with an error message

        """
        options = options or ExportOptions()
        warnings: list[str] = []

        try:
            return await self._run(wallet_address, stake_address, options, on_progress, cancel, warnings)
        except ExportCancelledError:
            logger.info("Export for %s cancelled", wallet_address)
            return self._failure(CANCELLED, warnings)
        except Exception as e:
            logger.exception("Export for %s failed", wallet_address)
            return self._failure(str(e) or type(e).__name__, warnings)

    async def stream(
        self,
        wallet_address: str,
        stake_address: str | None = None,
        options: ExportOptions | None = None,
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[ExportProgress | ExportResult]:
        """
        Run an export and yield its progress, ending with the ExportResult.

        Parameters
        ----------
        wallet_address : str
            Address supplied by the user
        stake_address : str | None
            Stake key of the wallet
        options : ExportOptions | None
            Export filters
        cancel : CancelToken | None
            Cancellation token

        Yields
        ------
        ExportProgress | ExportResult
            Progress snapshots, then exactly one ExportResult

        """
        queue: asyncio.Queue = asyncio.Queue()
        task = asyncio.create_task(
            self.run(wallet_address, stake_address, options, on_progress=queue.put_nowait, cancel=cancel)
        )
        task.add_done_callback(lambda _: queue.put_nowait(_DONE))

        try:
            while (item := await queue.get()) is not _DONE:
                yield item
            yield task.result()
        finally:
            # Consumer stopped early
            if not task.done():
                task.cancel()

    async def _run(
        self,
        wallet_address: str,
        stake_address: str | None,
        options: ExportOptions,
        on_progress: ProgressCallback | None,
        cancel: CancelToken | None,
        warnings: list[str],
    ) -> ExportResult:
        settings = self.settings

        def emit(phase: ExportPhase, current: int = 0, total: int = 0) -> None:
            self.progress = ExportProgress(phase=phase, current=current, total=total)
            if on_progress is not None:
                on_progress(self.progress)

        # Phase 1: addresses and transaction references
        emit(ExportPhase.FETCHING)
        addresses, expansion_warning = await expand_addresses(
            self.client,
            wallet_address,
            stake_address,
            cancel=cancel,
            page_size=settings.page_size,
            max_pages=settings.max_pages,
        )
        if expansion_warning:
            warnings.append(expansion_warning)

        tx_refs = await self._discover(addresses, cancel, emit, warnings)

        wants_rewards = options.include_staking_rewards and bool(stake_address)
        if not tx_refs and not wants_rewards:
            return self._failure(NO_TRANSACTIONS, warnings)

        # Phase 2: details
        emit(ExportPhase.PROCESSING, 0, len(tx_refs))
        details = await fetch_transaction_details(
            self.client,
            tx_refs,
            addresses,
            on_progress=lambda current, total: emit(ExportPhase.PROCESSING, current, total),
            cancel=cancel,
            batch_size=settings.batch_size,
            batch_delay=settings.batch_delay,
            sleep=self._sleep,
        )
        if details.failed_count:
            warnings.append(f"{details.failed_count} transaction(s) could not be fetched and were skipped")

        transactions: list[Transaction] = list(details.transactions)

        if wants_rewards:
            rewards = await collect_rewards(
                self.client,
                stake_address,
                genesis=settings.genesis,
                cancel=cancel,
                page_size=settings.page_size,
                max_pages=settings.max_pages,
            )
            transactions.extend(rewards)

        # Phase 3: filter and render
        emit(ExportPhase.EXPORTING, 0, 1)
        filtered = filter_transactions(transactions, options)
        if not filtered:
            return self._failure(NO_MATCHES, warnings)

        content = generate_report(filtered)
        filename = report_filename(self._now())
        emit(ExportPhase.EXPORTING, 1, 1)

        logger.info("Exported %d transactions to %s", len(filtered), filename)
        return ExportResult(
            success=True,
            filename=filename,
            transaction_count=len(filtered),
            date_range=DateRange(start=filtered[-1].timestamp, end=filtered[0].timestamp),
            warning="; ".join(warnings) or None,
            content=content,
        )

    async def _discover(
        self,
        addresses: list[str],
        cancel: CancelToken | None,
        emit: Callable[..., None],
        warnings: list[str],
    ) -> list[TxRef]:
        """Collect references for all addresses concurrently and deduplicate them."""
        # Latest cumulative count per address; the displayed total is their sum
        counts = dict.fromkeys(addresses, 0)

        def progress_for(address: str) -> Callable[[int], None]:
            def update(count: int) -> None:
                counts[address] = count
                emit(ExportPhase.FETCHING, sum(counts.values()), 0)

            return update

        outcomes = await asyncio.gather(
            *(
                collect_tx_refs(
                    self.client,
                    address,
                    on_progress=progress_for(address),
                    cancel=cancel,
                    page_size=self.settings.page_size,
                    max_pages=self.settings.max_pages,
                )
                for address in addresses
            ),
            return_exceptions=True,
        )

        ref_lists: list[list[TxRef]] = []
        failures: list[IndexerError] = []
        for address, outcome in zip(addresses, outcomes, strict=True):
            if isinstance(outcome, (RateLimitedError, ExportCancelledError)):
                raise outcome
            if isinstance(outcome, IndexerError):
                logger.warning("Discovery for %s failed: %s", address, outcome)
                failures.append(outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            ref_lists.append(outcome)

        if failures:
            if len(failures) == len(addresses):
                raise failures[0]
            warnings.append(f"could not fetch transactions for {len(failures)} address(es)")

        return dedupe_tx_refs(ref_lists)

    def _failure(self, error: str, warnings: list[str]) -> ExportResult:
        return ExportResult(success=False, error=error, warning="; ".join(warnings) or None)
