from __future__ import annotations

import dataclasses
import json
import logging
import sys
import typing

import anyio

from ._exceptions import EncodingError, FileAccessError, OutputWriteError, Phase
from ._models import Options, ResponseHandle

logger = logging.getLogger("fetchquest.writer")


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def render_headers(headers: typing.Iterable[tuple[str, str]]) -> str:
    """Render headers as a single map-like line, in the order received.

    >>> render_headers([("content-type", "text/plain"), ("set-cookie", "a=1")])
    '{"content-type": "text/plain", "set-cookie": "a=1"}'
    """
    pairs = (
        f"{_quote(key)}: {_quote(value)}" for key, value in headers
    )
    return "{" + ", ".join(pairs) + "}"


def decode_body(content: bytes, encoding: str | None) -> str:
    charset = encoding or "utf-8"
    try:
        return content.decode(charset)
    except (UnicodeDecodeError, LookupError) as exc:
        raise EncodingError(
            f"Failed to decode response body as {charset}: {exc}"
        ) from exc


class OutputSink:
    """Write-only destination for response output: a file or standard output.

    Standard output is flushed but never closed. The first failure while
    writing, flushing or closing is the one reported.
    """

    def __init__(
        self, file: anyio.AsyncFile[bytes], *, name: str, owned: bool
    ) -> None:
        self._file = file
        self.name = name
        self._owned = owned
        self.bytes_written = 0

    @classmethod
    async def open(
        cls, path: str | None, *, stdout: typing.BinaryIO | None = None
    ) -> OutputSink:
        if path is None:
            stream = stdout if stdout is not None else sys.stdout.buffer
            return cls(anyio.wrap_file(stream), name="<stdout>", owned=False)
        try:
            file = await anyio.open_file(path, "wb")
        except OSError as exc:
            raise FileAccessError(
                f"Failed to create output file {path!r}: {exc.strerror or exc}",
                phase=Phase.WRITING,
            ) from exc
        return cls(file, name=path, owned=True)

    async def write(self, data: bytes) -> None:
        try:
            await self._file.write(data)
        except (OSError, ValueError) as exc:
            raise OutputWriteError(f"Failed to write to {self.name}: {exc}") from exc
        self.bytes_written += len(data)

    async def aclose(self) -> None:
        error: OutputWriteError | None = None
        try:
            await self._file.flush()
        except (OSError, ValueError) as exc:
            error = OutputWriteError(f"Failed to flush {self.name}: {exc}")
            error.__cause__ = exc

        if self._owned:
            try:
                await self._file.aclose()
            except (OSError, ValueError) as exc:
                # Closing a buffered file flushes again; keep the first error.
                if error is None:
                    error = OutputWriteError(f"Failed to close {self.name}: {exc}")
                    error.__cause__ = exc

        if error is not None:
            raise error

    async def __aenter__(self) -> OutputSink:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: typing.Any,
    ) -> None:
        if exc_type is None:
            await self.aclose()
            return
        try:
            await self.aclose()
        except OutputWriteError as close_error:
            logger.debug("Ignoring %s after earlier failure: %r", close_error, exc)


@dataclasses.dataclass(frozen=True)
class WriteStep:
    name: str
    enabled: bool
    render: typing.Callable[[ResponseHandle], typing.Awaitable[bytes]]


class ResponseWriter:
    """Writes a response to the sink as a fixed sequence of optional steps.

    The header step always runs before the body step. ``silent`` skips
    everything, including opening the sink.
    """

    def __init__(
        self,
        *,
        output: str | None = None,
        include_headers: bool = False,
        head: bool = False,
        silent: bool = False,
        stdout: typing.BinaryIO | None = None,
    ) -> None:
        self.output = output
        self.include_headers = include_headers
        self.head = head
        self.silent = silent
        self._stdout = stdout

    @classmethod
    def from_options(
        cls, options: Options, *, stdout: typing.BinaryIO | None = None
    ) -> ResponseWriter:
        return cls(
            output=options.output,
            include_headers=options.include_headers,
            head=options.head,
            silent=options.silent,
            stdout=stdout,
        )

    def steps(self) -> list[WriteStep]:
        return [
            WriteStep("headers", self.include_headers, self._render_headers),
            WriteStep("body", not self.head, self._render_body),
        ]

    async def _render_headers(self, response: ResponseHandle) -> bytes:
        return (render_headers(response.headers) + "\n").encode("utf-8")

    async def _render_body(self, response: ResponseHandle) -> bytes:
        text = decode_body(await response.aread(), response.encoding)
        return (text + "\n").encode("utf-8")

    async def write(
        self,
        response: ResponseHandle,
        *,
        on_step: typing.Callable[[str], None] | None = None,
    ) -> None:
        if self.silent:
            logger.debug("Silent mode, discarding output")
            return

        steps = [step for step in self.steps() if step.enabled]
        async with await OutputSink.open(self.output, stdout=self._stdout) as sink:
            for step in steps:
                data = await step.render(response)
                if on_step is not None:
                    on_step(step.name)
                await sink.write(data)
            logger.debug("Wrote %d byte(s) to %s", sink.bytes_written, sink.name)
