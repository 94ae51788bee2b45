"""
Bounded-concurrency batch execution.

A batch is a list of independent zero-argument coroutine functions. Every
operation is attempted exactly once through a ConcurrencyLimiter; a failure
in one operation never cancels or blocks the others. The caller gets back one
Outcome per operation, in submission order, once all of them have settled.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, List, Optional, Sequence, Tuple

from .errors import BatchError
from .limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 100

Operation = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class Outcome:
    """Terminal state of one operation: a value on success or the raised error."""

    index: int
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchResult:
    outcomes: Tuple[Outcome, ...]
    elapsed: float = 0.0

    def __len__(self) -> int:
        return len(self.outcomes)

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self.outcomes)

    @property
    def succeeded(self) -> List[Outcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[Outcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    def values(self) -> List[Any]:
        return [o.value for o in self.outcomes if o.ok]

    def raise_for_failures(self, label: str = "batch") -> None:
        """Raise BatchError if any operation failed."""
        if not self.ok:
            raise BatchError(label, self)


class BatchOrchestrator:
    """Runs batches of operations through a shared limiter."""

    def __init__(self, limiter: ConcurrencyLimiter):
        self.limiter = limiter

    async def _settle(self, index: int, operation: Operation, label: str) -> Outcome:
        try:
            value = await self.limiter.run(operation)
        except Exception as e:
            logger.error(f"{label} #{index} failed: {type(e).__name__}: {e}")
            return Outcome(index=index, error=e)
        logger.debug(f"{label} #{index} succeeded")
        return Outcome(index=index, value=value)

    async def run(self, operations: Sequence[Operation], label: str = "batch") -> BatchResult:
        """Attempt every operation and wait for all of them to settle."""
        operations = list(operations)
        if not operations:
            logger.info(f"{label}: nothing to do")
            return BatchResult(outcomes=())

        logger.info(
            f"{label}: starting {len(operations)} operations "
            f"(max {self.limiter.capacity} in flight)"
        )
        started = time.monotonic()
        outcomes = await asyncio.gather(
            *(self._settle(i, op, label) for i, op in enumerate(operations))
        )
        result = BatchResult(outcomes=tuple(outcomes), elapsed=time.monotonic() - started)

        failed = len(result.failed)
        log = logger.warning if failed else logger.info
        log(
            f"{label}: {len(result) - failed} succeeded, {failed} failed "
            f"in {result.elapsed:.1f}s (peak {self.limiter.peak_in_flight} in flight)"
        )
        return result


def default_orchestrator(concurrency: int = DEFAULT_CONCURRENCY) -> BatchOrchestrator:
    """Create an orchestrator with its own limiter."""
    return BatchOrchestrator(ConcurrencyLimiter(concurrency))
