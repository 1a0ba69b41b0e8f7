"""Request orchestration for provider calls.

Each of the four slots (accounts, zones, records, mutation) holds at
most one pending request.  Calls run off the UI thread through a
pluggable *runner*; their outcomes are queued as :class:`Completion`
objects and applied by the single consumer that calls :meth:`drain`.

Superseded requests are never cancelled.  They run to completion and
their result is discarded when it arrives.
"""

from __future__ import annotations

import itertools
import logging
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

from nyxflare.models import Slot
from nyxflare.providers.base import RemoteError

logger = logging.getLogger(__name__)

Runner = Callable[[Callable[[], None]], Any]


@dataclass(frozen=True)
class PendingRequest:
    slot: Slot
    token: int
    key: Hashable
    started_at: float
    target: Optional[str] = None
    label: str = ""


@dataclass(frozen=True)
class Completion:
    slot: Slot
    token: int
    key: Hashable
    target: Optional[str] = None
    value: Any = None
    error: Optional[RemoteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RequestOrchestrator:
    """Serialise provider calls per slot and funnel results to one consumer.

    Parameters:
      runner: Callable that executes a zero-argument job, possibly in
          another thread.  Defaults to a small thread pool.
      notify: Called (from the worker thread) after a completion is
          queued, so the UI loop can wake up and :meth:`drain`.
    """

    def __init__(self, runner: Optional[Runner] = None, notify: Optional[Callable[[], None]] = None):
        self._executor: Optional[ThreadPoolExecutor] = None
        if runner is None:
            self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="nyxflare")
            runner = self._executor.submit
        self._runner = runner
        self._notify = notify
        self._pending: dict[Slot, PendingRequest] = {}
        # Targets of mutations still running, superseded or not.
        self._mutating: set[Optional[str]] = set()
        self._completions: queue.Queue[Completion] = queue.Queue()
        self._tokens = itertools.count(1)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        slot: Slot,
        call: Callable[[], Any],
        *,
        key: Hashable,
        target: Optional[str] = None,
        label: str = "",
    ) -> bool:
        """Start *call* in *slot*.

        Returns False when the submission is dropped: a fetch for the same
        key is pending, or a mutation for the same target is still running
        (even one that was superseded and has not reported back yet).  A
        request for a different key or target supersedes the pending one.
        """
        if slot is Slot.MUTATION and target in self._mutating:
            logger.debug("Mutation for %s already in flight", target)
            return False
        current = self._pending.get(slot)
        if current is not None:
            if slot is not Slot.MUTATION and current.key == key:
                logger.debug("%s fetch for %r already in flight", slot.value, key)
                return False
            logger.debug(
                "Superseding %s request %d (%r)", slot.value, current.token, current.key,
            )

        request = PendingRequest(
            slot=slot,
            token=next(self._tokens),
            key=key,
            started_at=time.monotonic(),
            target=target,
            label=label,
        )
        self._pending[slot] = request
        if slot is Slot.MUTATION:
            self._mutating.add(target)
        logger.debug("Submitting %s request %d %s", slot.value, request.token, label)
        self._runner(lambda: self._execute(request, call))
        return True

    def _execute(self, request: PendingRequest, call: Callable[[], Any]) -> None:
        try:
            value = call()
            completion = Completion(
                slot=request.slot,
                token=request.token,
                key=request.key,
                target=request.target,
                value=value,
            )
        except RemoteError as e:
            completion = Completion(
                slot=request.slot, token=request.token, key=request.key,
                target=request.target, error=e,
            )
        except Exception as e:
            logger.exception("Unexpected failure in %s request", request.slot.value)
            completion = Completion(
                slot=request.slot, token=request.token, key=request.key,
                target=request.target, error=RemoteError(None, str(e) or type(e).__name__),
            )
        self._completions.put(completion)
        if self._notify is not None:
            self._notify()

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def drain(self) -> list[Completion]:
        """Return queued completions that are still current, in arrival order.

        Completions for superseded requests are dropped here.
        """
        delivered: list[Completion] = []
        while True:
            try:
                completion = self._completions.get_nowait()
            except queue.Empty:
                break
            if completion.slot is Slot.MUTATION:
                self._mutating.discard(completion.target)
            current = self._pending.get(completion.slot)
            if current is None or current.token != completion.token:
                logger.debug(
                    "Discarding stale %s result %d", completion.slot.value, completion.token,
                )
                continue
            del self._pending[completion.slot]
            delivered.append(completion)
        return delivered

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def is_pending(self, slot: Slot) -> bool:
        return slot in self._pending

    def pending(self) -> dict[Slot, PendingRequest]:
        return dict(self._pending)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
