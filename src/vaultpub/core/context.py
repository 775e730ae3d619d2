"""Explicit run context threaded through every stage: cancellation + cooperative scheduler"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from vaultpub.core.concurrency import YieldScheduler
from vaultpub.core.errors import PipelineCancelledError


logger = logging.getLogger(__name__)


class CancellationToken:
    """Caller-owned cancellation flag; checked at stage boundaries and before slow chunks."""

    def __init__(self):
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        for callback in self._callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register callback; runs immediately when already cancelled."""
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def throw_if_cancelled(self) -> None:
        if self._cancelled:
            raise PipelineCancelledError()


@dataclass
class PipelineContext:
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    scheduler:    YieldScheduler = field(default_factory=YieldScheduler)

    def checkpoint(self) -> None:
        """Synchronous cancellation check for use inside stage loops."""
        self.cancellation.throw_if_cancelled()
