import threading


class CancellationToken:
    """Cooperative cancellation for a highlight pass.

    The pass checks the token between query matches and between injection
    groups and returns what it has collected so far once it is cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
