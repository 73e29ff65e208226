"""Pytest configuration for cardano-tx-export tests."""

import httpx
import pytest
import pytest_asyncio

from cardano_tx_export.indexer import IndexerClient, RateLimiter


class FakeIndexer:
    """
    Simulated Blockfrost API served through httpx.MockTransport.

    Each path maps to a list of (status, body) responses returned in order;
    the last one repeats once the list is exhausted. Unknown paths answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[tuple[int, object]]] = {}
        self.calls: list[str] = []
        self.headers: list[httpx.Headers] = []

    @staticmethod
    def ref(tx_hash: str, block_time: int = 1_700_000_000) -> dict:
        """Raw address-transactions entry."""
        return {"tx_hash": tx_hash, "tx_index": 0, "block_height": 1000, "block_time": block_time}

    def add(self, path: str, *responses: tuple[int, object]) -> None:
        self.routes[path] = list(responses)

    def ok(self, path: str, body: object) -> None:
        self.add(path, (200, body))

    def add_address_pages(self, address: str, pages: list[list[dict]]) -> None:
        for number, page in enumerate(pages, start=1):
            self.ok(f"/addresses/{address}/transactions?page={number}&order=desc", page)

    def add_transaction(
        self,
        tx_hash: str,
        block_time: int,
        inputs: list[tuple[str, int]],
        outputs: list[tuple[str, int]],
        fees: str = "170000",
        block_height: int = 1000,
    ) -> None:
        def entries(pairs: list[tuple[str, int]]) -> list[dict]:
            return [{"address": a, "amount": [{"unit": "lovelace", "quantity": str(q)}]} for a, q in pairs]

        self.ok(
            f"/txs/{tx_hash}",
            {"hash": tx_hash, "block_height": block_height, "block_time": block_time, "fees": fees},
        )
        self.ok(
            f"/txs/{tx_hash}/utxos",
            {"hash": tx_hash, "inputs": entries(inputs), "outputs": entries(outputs)},
        )

    def count(self, prefix: str) -> int:
        return sum(1 for call in self.calls if call.startswith(prefix))

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.raw_path.decode()
        self.calls.append(path)
        self.headers.append(request.headers)

        responses = self.routes.get(path)
        if not responses:
            return httpx.Response(404, json={"status_code": 404, "error": "Not Found"})

        status, body = responses.pop(0) if len(responses) > 1 else responses[0]
        return httpx.Response(status, json=body)


@pytest.fixture
def indexer():
    """Empty simulated indexer."""
    return FakeIndexer()


@pytest.fixture
def sleeps():
    """Durations passed to the fake sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    """Async sleep that records its argument and returns immediately."""

    async def sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return sleep


@pytest_asyncio.fixture
async def client(indexer, fake_sleep):
    """Indexer client wired to the simulated indexer with throttling disabled."""
    client = IndexerClient(
        project_id="test-project",
        base_url="https://indexer.test",
        rate_limiter=RateLimiter(min_interval=0.0),
        transport=httpx.MockTransport(indexer.handler),
        sleep=fake_sleep,
    )
    yield client
    await client.close()
