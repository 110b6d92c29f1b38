"""Cooperative cancellation for history runs.

Commit building is strictly sequential, so cancellation is only checked
between releases: a release is either fully committed and tagged or not
started at all. Objects written for completed releases stay valid and are
skipped on the next run.
"""

import threading
import time
from typing import Optional

from ..errors import RunCancelled


class CancellationToken:
    """Thread-safe cancellation flag with an optional deadline.

    Examples:
        >>> token = CancellationToken(timeout=600)
        >>> token.check()   # raises RunCancelled once cancelled or expired
        >>> token.cancel()  # from a signal handler or another thread
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize a token.

        Args:
            timeout: Seconds from now after which the token counts as
                cancelled. None or 0 means no deadline.
        """
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout else None

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise RunCancelled if cancelled or past the deadline."""
        if self._event.is_set():
            raise RunCancelled("Run cancelled")
        if self.expired():
            raise RunCancelled("Run deadline exceeded")
