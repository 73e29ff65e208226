"""Response shapes returned by the Blockfrost indexer."""

from pydantic import BaseModel, ConfigDict


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TxRef(_Response):
    """
    Pointer to a transaction found during discovery.

    Attributes
    ----------
    tx_hash : str
        Transaction hash
    tx_index : int
        Index of the transaction within its block
    block_height : int
        Block height
    block_time : int
        Block time in Unix seconds

    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    tx_hash: str
    tx_index: int = 0
    block_height: int = 0
    block_time: int = 0


class UtxoAmount(_Response):
    unit: str
    quantity: str


class UtxoEntry(_Response):
    address: str
    amount: list[UtxoAmount]

    def quantity_of(self, unit: str) -> int:
        """Summed quantity of one asset unit held by this entry."""
        return sum(int(a.quantity) for a in self.amount if a.unit == unit)


class TxUtxos(_Response):
    hash: str
    inputs: list[UtxoEntry]
    outputs: list[UtxoEntry]


class TxDetail(_Response):
    hash: str
    block_height: int
    block_time: int
    fees: str


class AccountAddress(_Response):
    address: str


class AccountReward(_Response):
    epoch: int
    amount: str
    pool_id: str
    type: str | None = None
