"""Cooperative cancellation signal shared between a scan and its caller."""


class CancellationToken:
    """Advisory cancellation flag.

    Nothing is interrupted preemptively: the scan polls the flag before each
    batch and before each candidate file.
    """

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled
