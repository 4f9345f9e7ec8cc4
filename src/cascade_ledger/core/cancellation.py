"""Cooperative cancellation for long-running tasks."""

import threading


class CancellationToken:
    """
    Flag shared between a long-running task and whoever may stop it.

    The task polls ``is_cancelled`` at safe points; requesting cancellation
    never interrupts work already in progress.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()
