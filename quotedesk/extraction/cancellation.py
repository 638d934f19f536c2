"""Cooperative cancellation for in-flight extraction calls."""

import threading


class CancellationToken:
    """Signals that the caller no longer wants an extraction result.

    Set from any thread (e.g., when the user starts a new conversation);
    providers check it before calling out, between retry attempts and before
    decoding the response.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    @property
    def event(self) -> threading.Event:
        """Underlying event, usable with tenacity.stop_when_event_set."""
        return self._event

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Mark the token cancelled. Idempotent; the first reason wins."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()
