"""Helpers for composing ``concurrent.futures.Future`` objects."""

import threading
from concurrent.futures import Future
from typing import Any, Callable, Iterable, List


def completed_future(result: Any = None) -> Future:
    """Return a future that already holds ``result``."""
    future = Future()
    future.set_result(result)
    return future


def failed_future(exc: BaseException) -> Future:
    """Return a future that already failed with ``exc``."""
    future = Future()
    future.set_exception(exc)
    return future


def map_future(source: Future, fn: Callable[[Any], Any]) -> Future:
    """Return a future completed with ``fn(source.result())``.

    A failure of ``source`` or of ``fn`` is propagated unchanged.
    """
    target = Future()

    def _on_done(f: Future):
        exc = f.exception()
        if exc is not None:
            target.set_exception(exc)
            return
        try:
            target.set_result(fn(f.result()))
        except Exception as e:
            target.set_exception(e)

    source.add_done_callback(_on_done)
    return target


def all_of(futures: Iterable[Future]) -> Future:
    """Return a future completed with the list of results once every input is done.

    Fails with the first exception observed, after all inputs finished.
    """
    futures = list(futures)
    target = Future()
    if not futures:
        target.set_result([])
        return target

    remaining = [len(futures)]
    errors: List[BaseException] = []
    lock = threading.Lock()

    def _on_done(f: Future):
        exc = f.exception()
        with lock:
            if exc is not None:
                errors.append(exc)
            remaining[0] -= 1
            finished = remaining[0] == 0
        if finished:
            if errors:
                target.set_exception(errors[0])
            else:
                target.set_result([item.result() for item in futures])

    for future in futures:
        future.add_done_callback(_on_done)
    return target
