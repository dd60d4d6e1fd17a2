"""Mix execution state machine.

A MixExecution consumes lifecycle events for one run of one output
container and turns each of them into a new status snapshot. It never
touches the ffmpeg process; the runner owns that.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from trackmix.domain.enums import MixState
from trackmix.errors import NotStartedError
from trackmix.executor.events import (
    CodecInfoEvent,
    DoneEvent,
    ErrorEvent,
    MixEvent,
    ProgressEvent,
    StartEvent,
)
from trackmix.executor.status import MixStatus, StatusLog

logger = logging.getLogger(__name__)

StatusCallback = Callable[[MixStatus], None]


class MixExecution:
    """Drive a status log from the events of a single mix run.

    Transitions:
        start -> mixing (records the command)
        codec_info / progress -> mixing (records the payload)
        error -> error, unless canceled and killed by SIGTERM
        done -> done
        cancel() -> canceled; later events are ignored
    """

    def __init__(
        self,
        container_id: int,
        log: StatusLog,
        on_status: StatusCallback | None = None,
    ) -> None:
        self.container_id = container_id
        self._log = log
        self._on_status = on_status
        self._lock = threading.Lock()
        self._canceled = False
        self._finished = False

    @property
    def canceled(self) -> bool:
        return self._canceled

    @property
    def finished(self) -> bool:
        """Return True once a terminal snapshot has been recorded."""
        return self._finished or self._canceled

    def begin(self) -> MixStatus:
        """Record the transition into ``mixing``."""
        with self._lock:
            status = MixStatus(state=MixState.MIXING)
            self._log.append(status)
        self._notify(status)
        return status

    def cancel(self) -> MixStatus:
        """Record the ``canceled`` terminal state.

        Raises:
            NotStartedError: A terminal state is already recorded.
        """
        with self._lock:
            if self._finished or self._canceled:
                raise NotStartedError(self.container_id, self._log.latest.state.value)
            self._canceled = True
            status = self._log.latest.evolve(state=MixState.CANCELED)
            self._log.append(status)
        logger.info(
            "Mix canceled for output container %d",
            self.container_id,
            extra={"container_id": self.container_id},
        )
        self._notify(status)
        return status

    def handle(self, event: MixEvent) -> MixStatus | None:
        """Apply one lifecycle event.

        Args:
            event: Event published by the runner.

        Returns:
            The appended snapshot, or None if the event was ignored.
        """
        with self._lock:
            status = self._transition(event)
            if status is None:
                return None
            self._log.append(status)
        self._notify(status)
        return status

    def _transition(self, event: MixEvent) -> MixStatus | None:
        if self._canceled:
            if isinstance(event, ErrorEvent) and event.is_terminate_kill:
                logger.debug(
                    "Suppressed terminate error for canceled output container %d",
                    self.container_id,
                )
            else:
                logger.debug(
                    "Ignoring %s after cancel for output container %d",
                    type(event).__name__,
                    self.container_id,
                )
            return None
        if self._finished:
            logger.warning(
                "Ignoring %s after output container %d finished",
                type(event).__name__,
                self.container_id,
            )
            return None

        previous = self._log.latest
        if isinstance(event, StartEvent):
            logger.debug(
                "Mix started for output container %d: %s",
                self.container_id,
                event.command,
                extra={"container_id": self.container_id},
            )
            return MixStatus(state=MixState.MIXING, command=event.command)
        if isinstance(event, CodecInfoEvent):
            return previous.evolve(state=MixState.MIXING, codec_info=event.info)
        if isinstance(event, ProgressEvent):
            return previous.evolve(state=MixState.MIXING, progress=event.progress)
        if isinstance(event, ErrorEvent):
            self._finished = True
            logger.error(
                "Mix failed for output container %d: %s",
                self.container_id,
                event.message,
                extra={
                    "container_id": self.container_id,
                    "returncode": event.returncode,
                },
            )
            return previous.evolve(state=MixState.ERROR, error=event.message)
        if isinstance(event, DoneEvent):
            self._finished = True
            logger.info(
                "Mix finished for output container %d",
                self.container_id,
                extra={"container_id": self.container_id},
            )
            return previous.evolve(state=MixState.DONE, error=None)
        raise TypeError(f"Unknown mix event: {event!r}")

    def _notify(self, status: MixStatus) -> None:
        if self._on_status is None:
            return
        try:
            self._on_status(status)
        except Exception as e:
            logger.warning("Status callback error: %s", e)
