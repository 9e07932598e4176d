"""Ordered, fail-fast fetch loop with an optional bounded worker pool."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, TypeVar

from repo_to_txt.exceptions import OperationCancelledError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")
R = TypeVar("R")


class CancellationToken:
    """Flag checked between retrievals so an abandoned run stops issuing requests."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError


def fetch_ordered(
    items: Sequence[T],
    fetch: Callable[[T], R],
    *,
    workers: int = 1,
    cancel: CancellationToken | None = None,
) -> list[R]:
    """Apply `fetch` to every item and return the results in item order.

    With one worker the calls run one after the other on the calling thread.
    With more, at most `workers` calls are in flight; results are still placed
    by item index, not completion order. The first failure stops the run: no
    new call is started, queued ones are cancelled and the error of the
    earliest failed item is raised.

    Args:
        items (Sequence[T]): inputs, in output order
        fetch (Callable[[T], R]): the retrieval to run for each item
        workers (int): maximum number of concurrent calls
        cancel (CancellationToken | None): checked before each call and after each completion

    Raises:
        OperationCancelledError: if the token is cancelled during the run

    Returns:
        list[R]: one result per item
    """
    token = cancel or CancellationToken()
    if workers <= 1:
        results: list[R] = []
        for item in items:
            token.raise_if_cancelled()
            results.append(fetch(item))
        return results

    slots: list[R | None] = [None] * len(items)
    queue = deque(enumerate(items))
    in_flight: dict[Future[R], int] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="repo-to-txt-fetch") as pool:
        try:
            while queue or in_flight:
                while queue and len(in_flight) < workers:
                    token.raise_if_cancelled()
                    index, item = queue.popleft()
                    in_flight[pool.submit(fetch, item)] = index
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                failed = [f for f in done if f.exception() is not None]
                if failed:
                    first = min(failed, key=in_flight.__getitem__)
                    raise first.exception()  # type: ignore[misc]
                for future in done:
                    slots[in_flight.pop(future)] = future.result()
                token.raise_if_cancelled()
        finally:
            for future in in_flight:
                future.cancel()
    return slots  # type: ignore[return-value]
