"""
Concurrent weather enrichment for ranked candidates.

Lookups are blocking HTTP calls, so the fan-out runs on a thread pool. Every
branch writes only its own result slot, and results are merged back by input
position, never by completion order.
"""
from __future__ import annotations

import logging
from concurrent.futures import ALL_COMPLETED, FIRST_EXCEPTION, CancelledError, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar, Union

from domain.models import Coordinate, CurrentWeather, EnrichedPlace, Place, RankedPlace

T = TypeVar("T")
R = TypeVar("R")

WeatherLookup = Callable[[Coordinate], Optional[CurrentWeather]]

DEFAULT_MAX_WORKERS = 8

logger = logging.getLogger(__name__)


class EnrichmentPolicy(str, Enum):
    """What to do when some lookups in a batch fail."""
    ALL_OR_NOTHING = "all_or_nothing"  # any failure empties the batch
    PARTIAL = "partial"  # keep successes, report failures


@dataclass(frozen=True)
class EnrichmentFailure:
    index: int
    place: Place
    error: BaseException


@dataclass
class EnrichmentResult:
    places: List[EnrichedPlace] = field(default_factory=list)
    failures: List[EnrichmentFailure] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.failures)


class BatchDeadlineExceeded(TimeoutError):
    """A fan-out did not finish within its batch deadline."""


def _collect(
    futures: Sequence[Future],
    timeout: Optional[float],
    fail_fast: bool,
) -> List[Tuple[Optional[object], Optional[BaseException]]]:
    """
    Join `futures` and return one (value, error) pair per future, in order.

    Futures left unfinished are cancelled. In fail-fast mode they are reported
    as CancelledError when a sibling failed first; otherwise they missed the
    deadline and are reported as BatchDeadlineExceeded.
    """
    done, not_done = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION if fail_fast else ALL_COMPLETED)
    for fut in not_done:
        fut.cancel()
    sibling_failed = fail_fast and any(fut.exception() is not None for fut in done)
    outcomes: List[Tuple[Optional[object], Optional[BaseException]]] = []
    for fut in futures:
        if fut not in done:
            if sibling_failed:
                outcomes.append((None, CancelledError()))
            else:
                outcomes.append((None, BatchDeadlineExceeded("lookup did not finish before the batch deadline")))
            continue
        exc = fut.exception()
        outcomes.append((None, exc) if exc is not None else (fut.result(), None))
    return outcomes


def fan_out_ordered(
    items: Sequence[T],
    fn: Callable[[T], R],
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: Optional[float] = None,
) -> List[R]:
    """
    Run `fn` over `items` concurrently and return results in input order.

    Fail-fast: the first exception observed is re-raised and still-pending
    calls are cancelled. Running calls cannot be interrupted; their results
    are discarded.
    """
    if not items:
        return []
    workers = max(1, min(max_workers, len(items)))
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        futures = [executor.submit(fn, item) for item in items]
        outcomes = _collect(futures, timeout, fail_fast=True)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    errors = [exc for _, exc in outcomes if exc is not None and not isinstance(exc, CancelledError)]
    if errors:
        raise errors[0]
    return [value for value, _ in outcomes]  # type: ignore[misc]


def _as_place(item: Union[Place, RankedPlace]) -> Tuple[Place, Optional[float]]:
    if isinstance(item, RankedPlace):
        return item.place, item.distance_km
    return item, None


def enrich_places(
    places: Sequence[Union[Place, RankedPlace]],
    lookup: WeatherLookup,
    policy: EnrichmentPolicy = EnrichmentPolicy.ALL_OR_NOTHING,
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: Optional[float] = None,
) -> EnrichmentResult:
    """
    Attach a live weather snapshot to each place, one concurrent lookup per place.

    Output order always matches input order. Under ALL_OR_NOTHING a single
    failed lookup empties `places` (failures are still reported); under
    PARTIAL the successful subset is returned.
    """
    pairs = [_as_place(item) for item in places]
    if not pairs:
        return EnrichmentResult()

    fail_fast = policy == EnrichmentPolicy.ALL_OR_NOTHING
    workers = max(1, min(max_workers, len(pairs)))
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        futures = [executor.submit(lookup, place.coordinate) for place, _ in pairs]
        outcomes = _collect(futures, timeout, fail_fast=fail_fast)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    result = EnrichmentResult()
    for index, ((place, distance), (current, exc)) in enumerate(zip(pairs, outcomes)):
        if exc is not None:
            # Cancelled siblings of the first failure are not failures themselves.
            if isinstance(exc, CancelledError):
                continue
            result.failures.append(EnrichmentFailure(index=index, place=place, error=exc))
            continue
        result.places.append(EnrichedPlace(place=place, current=current, distance_km=distance))

    if result.failures:
        logger.warning(
            "Weather enrichment: %d of %d lookups failed (policy=%s); first error: %s",
            len(result.failures),
            len(pairs),
            policy.value,
            result.failures[0].error,
        )
        if fail_fast:
            result.places = []
    return result
