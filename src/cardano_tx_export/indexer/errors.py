"""Exception hierarchy for indexer failures."""


class IndexerError(Exception):
    """Base exception for indexer API errors."""


class NotFoundError(IndexerError):
    """The requested resource or page does not exist (HTTP 404)."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Not found: {path}")


class RateLimitedError(IndexerError):
    """The indexer kept answering HTTP 429 after all retries."""

    def __init__(self, path: str, attempts: int) -> None:
        self.path = path
        self.attempts = attempts
        super().__init__(f"Rate limited after {attempts} attempts: {path}")


class UpstreamError(IndexerError):
    """
    Any other indexer failure.

    Parameters
    ----------
    path : str
        Request path
    status_code : int | None
        HTTP status, or None for transport failures
    detail : str
        Human readable reason

    """

    def __init__(self, path: str, status_code: int | None = None, detail: str = "") -> None:
        self.path = path
        self.status_code = status_code
        self.detail = detail
        if status_code is not None:
            msg = f"Indexer error {status_code}: {path}"
        else:
            msg = f"Indexer request failed: {detail or path}"
        super().__init__(msg)
