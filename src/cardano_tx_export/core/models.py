"""Data models for transactions, export options, and export state."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

NATIVE_ASSET = "lovelace"
NATIVE_TICKER = "ADA"
REWARD_HASH_PREFIX = "reward_epoch_"


class TransactionType(StrEnum):
    """Direction of a transaction relative to the wallet."""

    SEND = "send"
    RECEIVE = "receive"
    STAKE_REWARD = "stake_reward"
    UNKNOWN = "unknown"


class AssetFilter(StrEnum):
    """Asset restriction applied to an export."""

    ALL = "all"
    ADA_ONLY = "ada_only"
    TOKENS = "tokens"


class ExportPhase(StrEnum):
    """Phase of a running export."""

    FETCHING = "fetching"
    PROCESSING = "processing"
    EXPORTING = "exporting"


def _check_integer_string(value: str) -> str:
    int(value)
    return value


# Ledger quantities stay decimal strings end to end; never floats.
IntegerString = Annotated[str, AfterValidator(_check_integer_string)]


class TransactionAmount(BaseModel):
    """
    A single input or output entry of a transaction.

    Attributes
    ----------
    address : str
        Payment address
    amount : str
        Quantity as a decimal integer string
    asset : str
        Asset unit ('lovelace' or a token unit)

    """

    model_config = ConfigDict(frozen=True)

    address: str
    amount: IntegerString
    asset: str = NATIVE_ASSET


class Transaction(BaseModel):
    """
    Canonical export record.

    Attributes
    ----------
    tx_hash : str
        Transaction hash, or ``reward_epoch_<n>`` for staking rewards
    block_height : int
        Block height (0 for rewards)
    block_time : int
        Block time in Unix seconds
    timestamp : datetime
        UTC timestamp derived from block_time
    type : TransactionType
        Direction relative to the wallet
    inputs : tuple[TransactionAmount, ...]
        Transaction inputs
    outputs : tuple[TransactionAmount, ...]
        Transaction outputs
    net_amount : str
        Signed net change for the wallet as a decimal integer string
    asset : str
        Asset unit of net_amount
    asset_ticker : str | None
        Display ticker
    fee : str | None
        Fee in lovelace, present only when the wallet paid it
    pool_id : str | None
        Stake pool that paid a reward
    stake_address : str | None
        Stake address a reward was paid to

    """

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    block_height: int
    block_time: int
    timestamp: datetime
    type: TransactionType
    inputs: tuple[TransactionAmount, ...] = ()
    outputs: tuple[TransactionAmount, ...] = ()
    net_amount: IntegerString
    asset: str = NATIVE_ASSET
    asset_ticker: str | None = None
    fee: IntegerString | None = None
    pool_id: str | None = None
    stake_address: str | None = None

    @property
    def is_native(self) -> bool:
        """Whether the record is denominated in the native currency."""
        return self.asset == NATIVE_ASSET


class ExportOptions(BaseModel):
    """
    User-chosen export configuration.

    Attributes
    ----------
    start_date : datetime | None
        Inclusive lower bound (naive values are treated as UTC)
    end_date : datetime | None
        Inclusive upper bound (naive values are treated as UTC)
    include_staking_rewards : bool
        Whether reward records are exported
    asset_filter : AssetFilter
        Asset restriction

    """

    model_config = ConfigDict(frozen=True)

    start_date: datetime | None = None
    end_date: datetime | None = None
    include_staking_rewards: bool = True
    asset_filter: AssetFilter = AssetFilter.ALL

    @field_validator("start_date", "end_date")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ExportProgress(BaseModel):
    """Progress of a running export."""

    phase: ExportPhase
    current: int = 0
    total: int = 0


class DateRange(BaseModel):
    """Time span covered by an export."""

    start: datetime
    end: datetime


class ExportResult(BaseModel):
    """
    Terminal value of an export.

    Attributes
    ----------
    success : bool
        Whether a report was produced
    filename : str
        Generated report file name (empty on failure)
    transaction_count : int
        Number of exported rows
    date_range : DateRange | None
        Oldest and newest exported timestamps
    error : str | None
        User-facing error message
    warning : str | None
        Non-fatal warning (incomplete data)
    content : str | None
        Rendered report text

    """

    success: bool
    filename: str = ""
    transaction_count: int = 0
    date_range: DateRange | None = None
    error: str | None = None
    warning: str | None = None
    content: str | None = Field(default=None, repr=False)


class GenesisConstants(BaseModel):
    """
    Fixed network constants used to approximate epoch start times.

    Attributes
    ----------
    start_timestamp : int
        Unix time at which ``start_epoch`` began
    epoch_length_seconds : int
        Fixed epoch duration
    start_epoch : int
        Epoch index at ``start_timestamp``

    """

    model_config = ConfigDict(frozen=True)

    start_timestamp: int = 1596059091
    epoch_length_seconds: int = 432000
    start_epoch: int = 208


class ExporterSettings(BaseModel):
    """Tunables for the export pipeline."""

    page_size: int = 100
    max_pages: int = 100
    batch_size: int = 10
    batch_delay: float = 0.2
    genesis: GenesisConstants = Field(default_factory=GenesisConstants)


def timestamp_from_unix(seconds: int) -> datetime:
    """Convert Unix seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=UTC)
