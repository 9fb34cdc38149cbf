"""Single-flight guard for pipeline requests.

At most one draft generation or finalize request is in flight per guard.
A second request while one is running is rejected, never queued.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger

from worldschool.pathways.errors import PipelineBusyError


class SingleFlightGuard:
    def __init__(self, name: str = "pathway") -> None:
        self.name = name
        self._operation: str | None = None

    @property
    def busy(self) -> bool:
        return self._operation is not None

    @property
    def operation(self) -> str | None:
        return self._operation

    def try_acquire(self, operation: str = "request") -> bool:
        if self._operation is not None:
            logger.debug(
                "Single-flight guard busy, rejecting request",
                guard=self.name,
                running=self._operation,
                rejected=operation,
            )
            return False
        self._operation = operation
        return True

    def release(self) -> None:
        self._operation = None

    @contextmanager
    def hold(self, operation: str = "request") -> Iterator[None]:
        """Hold the guard for the duration of the block.

        Raises:
            PipelineBusyError: If another operation already holds the guard
        """
        if not self.try_acquire(operation):
            raise PipelineBusyError(f"Cannot start {operation}: {self._operation} is already in progress")
        try:
            yield
        finally:
            self.release()


class SingleFlightRegistry:
    """Guards keyed by (user, trip) for request handlers shared across callers.

    A guard is dropped once the request holding it through ``hold`` finishes
    and nothing else holds it, so the registry only keeps in-flight keys.
    """

    def __init__(self) -> None:
        self._guards: dict[tuple[str, str], SingleFlightGuard] = {}

    def guard(self, user_id: str, trip_id: str) -> SingleFlightGuard:
        key = (user_id, trip_id)
        if key not in self._guards:
            self._guards[key] = SingleFlightGuard(name=f"{user_id}:{trip_id}")
        return self._guards[key]

    @contextmanager
    def hold(self, user_id: str, trip_id: str, operation: str = "request") -> Iterator[None]:
        """Hold the (user, trip) guard for the duration of the block.

        Raises:
            PipelineBusyError: If a request for the same user and trip is in flight
        """
        key = (user_id, trip_id)
        guard = self.guard(user_id, trip_id)
        try:
            with guard.hold(operation):
                yield
        finally:
            if not guard.busy and self._guards.get(key) is guard:
                del self._guards[key]

    def __len__(self) -> int:
        return len(self._guards)
