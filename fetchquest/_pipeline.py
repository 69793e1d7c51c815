from __future__ import annotations

import enum
import logging
import typing

from ._builder import build_request
from ._exceptions import FetchError, Phase
from ._models import Options
from ._transport import HTTPXTransport, Transport
from ._writer import ResponseWriter

logger = logging.getLogger("fetchquest.pipeline")


class State(str, enum.Enum):
    IDLE = "idle"
    BUILDING = "building"
    SENT = "sent"
    HEADERS_RECEIVED = "headers-received"
    BODY_RECEIVED = "body-received"
    WRITTEN = "written"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({State.DONE, State.FAILED})

_PHASE_BY_STATE = {
    State.IDLE: Phase.BUILDING,
    State.BUILDING: Phase.BUILDING,
    State.SENT: Phase.SENDING,
    State.HEADERS_RECEIVED: Phase.WRITING,
    State.BODY_RECEIVED: Phase.WRITING,
    State.WRITTEN: Phase.WRITING,
}


class Fetch:
    """One invocation: build the request, send it once, write the response.

    ``state`` follows ``IDLE -> BUILDING -> SENT -> HEADERS_RECEIVED ->
    [BODY_RECEIVED ->] WRITTEN -> DONE``; any failure ends in ``FAILED``
    with ``failed_phase`` set.
    """

    def __init__(
        self,
        options: Options,
        *,
        transport: Transport | None = None,
        stdout: typing.BinaryIO | None = None,
    ) -> None:
        self.options = options
        self.transport: Transport = (
            transport if transport is not None else HTTPXTransport()
        )
        self.writer = ResponseWriter.from_options(options, stdout=stdout)
        self.state = State.IDLE
        self.failed_phase: Phase | None = None

    def _transition(self, state: State) -> None:
        logger.debug("%s -> %s", self.state.value, state.value)
        self.state = state

    def _on_step(self, name: str) -> None:
        if name == "body":
            self._transition(State.BODY_RECEIVED)

    async def run(self) -> None:
        if self.state is not State.IDLE:
            raise RuntimeError("A Fetch can only be run once.")

        try:
            self._transition(State.BUILDING)
            request, config = build_request(self.options)

            self._transition(State.SENT)
            try:
                response = await self.transport.send(request, config)
            finally:
                request.close()

            self._transition(State.HEADERS_RECEIVED)
            try:
                await self.writer.write(response, on_step=self._on_step)
            finally:
                await response.aclose()
            self._transition(State.WRITTEN)
        except BaseException as exc:
            if isinstance(exc, FetchError):
                self.failed_phase = exc.phase
            else:
                self.failed_phase = _PHASE_BY_STATE[self.state]
            logger.debug("Failed while %s: %r", self.failed_phase.value, exc)
            self._transition(State.FAILED)
            raise

        self._transition(State.DONE)
