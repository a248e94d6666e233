# src/pharaon/telemetry/buffer.py
"""Pre-configuration call queue.

Holds track_event/set_identifiers calls made before the agent is configured
and replays them, oldest first, exactly once.

Key design decisions:
- deque(maxlen=N) for optional capacity: automatic oldest-first eviction
- Correct overflow counting: check was_full BEFORE append (deque evicts during)
- Aggregate logging every 100 drops instead of per call
- One-way drain: the queue closes before replay starts, so a call issued
  while draining can never be buffered behind the drain
"""

from collections import deque
from collections.abc import Callable

import structlog

from pharaon.contracts.records import QueuedCall

logger = structlog.get_logger(__name__)


class EventQueue:
    """FIFO buffer of deferred calls, drained once at configuration time.

    Thread Safety:
        NOT thread-safe. The TrackingAgent holds its lock around enqueue()
        and drain_into().

    Attributes:
        dropped_count: Total number of calls evicted due to capacity.
        drained: True once drain_into() has started.

    Example:
        queue = EventQueue(max_size=1000)
        queue.enqueue(QueuedCall(kind=CallKind.EVENT, name="signup", params={}))
        queue.drain_into(agent.replay)
    """

    # Log aggregate metrics every N drops
    _LOG_INTERVAL = 100

    def __init__(self, max_size: int | None = None) -> None:
        """Initialize the queue.

        Args:
            max_size: Maximum number of buffered calls. When full, the oldest
                call is evicted on enqueue. None means unbounded.

        Raises:
            ValueError: If max_size < 1.
        """
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._calls: deque[QueuedCall] = deque(maxlen=max_size)
        self._dropped_count: int = 0
        self._last_logged_drop_count: int = 0
        self._drained = False

    def enqueue(self, call: QueuedCall) -> None:
        """Append a call, evicting the oldest one if at capacity.

        Raises:
            RuntimeError: If the queue has already been drained.
        """
        if self._drained:
            raise RuntimeError("EventQueue already drained; calls must take the direct path")

        was_full = self._calls.maxlen is not None and len(self._calls) == self._calls.maxlen
        self._calls.append(call)
        if was_full:
            # deque auto-dropped the oldest item
            self._dropped_count += 1
            if self._dropped_count - self._last_logged_drop_count >= self._LOG_INTERVAL:
                logger.warning(
                    "Pre-init queue overflow - oldest calls dropped",
                    dropped_since_last_log=self._dropped_count - self._last_logged_drop_count,
                    dropped_total=self._dropped_count,
                    queue_size=self._calls.maxlen,
                    hint="Call init() earlier or raise max_queued_calls",
                )
                self._last_logged_drop_count = self._dropped_count

    def drain_into(self, handler: Callable[[QueuedCall], object]) -> int:
        """Hand every queued call to handler in FIFO order, then close the queue.

        A handler exception is logged and draining continues with the next
        call. Calling drain_into() again is a no-op.

        Args:
            handler: Called once per queued call, oldest first.

        Returns:
            Number of calls handed to handler.
        """
        if self._drained:
            return 0
        self._drained = True

        drained = 0
        while self._calls:
            call = self._calls.popleft()
            drained += 1
            try:
                handler(call)
            except Exception as e:
                logger.error(
                    "Replay of queued call failed",
                    kind=call.kind.value,
                    error=str(e),
                )
        return drained

    @property
    def drained(self) -> bool:
        """Whether the queue has been drained (and is therefore closed)."""
        return self._drained

    @property
    def dropped_count(self) -> int:
        """Number of calls dropped due to capacity."""
        return self._dropped_count

    def __len__(self) -> int:
        """Return the current number of queued calls."""
        return len(self._calls)
