"""Cooperative cancellation for running exports."""

import asyncio


class ExportCancelledError(Exception):
    """Raised at a suspension point after the export was cancelled."""


class CancelToken:
    """
    Flag checked before every page fetch and batch of an export.

    Examples
    --------
    >>> token = CancelToken()
    >>> token.cancel()
    >>> token.cancelled
    True

    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request that the export stop at its next suspension point."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """
        Raise if cancellation was requested.

        Raises
        ------
        ExportCancelledError
            If cancel() has been called

        """
        if self._event.is_set():
            raise ExportCancelledError("Export cancelled")

    async def wait(self) -> None:
        """Block until cancel() is called."""
        await self._event.wait()


def check_cancelled(cancel: CancelToken | None) -> None:
    """Raise ExportCancelledError if a token is given and cancelled."""
    if cancel is not None:
        cancel.raise_if_cancelled()
