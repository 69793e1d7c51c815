from __future__ import annotations

import os
import typing

import pytest

import fetchquest
from fetchquest import RequestDescriptor, ResponseHandle, TransportConfig, UploadBody


@pytest.fixture
def anyio_backend():
    return "asyncio"


ENVIRONMENT_VARIABLES = {
    "FETCHQUEST_USER_AGENT",
    "FETCHQUEST_BEARER_TOKEN",
    "FETCHQUEST_COOKIE",
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "ALL_PROXY",
    "NO_PROXY",
}


@pytest.fixture(scope="function", autouse=True)
def clean_environ():
    """Keeps os.environ clean for every test without having to mock os.environ"""
    original_environ = os.environ.copy()
    os.environ.clear()
    os.environ.update(
        {
            k: v
            for k, v in original_environ.items()
            if k not in ENVIRONMENT_VARIABLES and k.upper() not in ENVIRONMENT_VARIABLES
        }
    )
    yield
    os.environ.clear()
    os.environ.update(original_environ)


class ExplodingStream:
    """A response body that fails the test as soon as anyone reads it."""

    def __aiter__(self) -> ExplodingStream:
        return self

    async def __anext__(self) -> bytes:
        pytest.fail("The response body must not be read.")


async def iter_chunks(chunks: typing.Iterable[bytes]) -> typing.AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


class StubResponse(ResponseHandle):
    def __init__(self, *args: typing.Any, **kwargs: typing.Any) -> None:
        super().__init__(*args, on_close=self._mark_closed, **kwargs)
        self.closed = False

    async def _mark_closed(self) -> None:
        self.closed = True


def create_response(
    status_code: int = 200,
    headers: typing.Iterable[tuple[str, str]] = (),
    body: bytes = b"",
    *,
    encoding: str | None = None,
    reason_phrase: str = "OK",
    stream: typing.AsyncIterable[bytes] | None = None,
) -> StubResponse:
    if stream is None:
        stream = iter_chunks([body[:3], body[3:]] if body else [])
    return StubResponse(
        status_code,
        headers,
        stream,
        reason_phrase=reason_phrase,
        encoding=encoding,
    )


class RecordingTransport:
    """Records every send and answers with a canned response or error."""

    def __init__(
        self,
        response: ResponseHandle | None = None,
        error: Exception | None = None,
    ) -> None:
        self.response = response if response is not None else create_response()
        self.error = error
        self.calls: list[tuple[RequestDescriptor, TransportConfig]] = []
        self.uploaded: bytes | None = None

    async def send(
        self, request: RequestDescriptor, config: TransportConfig
    ) -> ResponseHandle:
        self.calls.append((request, config))
        if isinstance(request.body, UploadBody):
            self.uploaded = request.body.stream.read()
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def make_response() -> typing.Callable[..., StubResponse]:
    return create_response


@pytest.fixture
def exploding_stream() -> ExplodingStream:
    return ExplodingStream()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport(
        create_response(
            200,
            [("content-type", "text/plain"), ("content-length", "13")],
            b"Hello, world!",
        )
    )


@pytest.fixture
def recording_transport_class() -> type[RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def options_factory() -> typing.Callable[..., fetchquest.Options]:
    def factory(**kwargs: typing.Any) -> fetchquest.Options:
        kwargs.setdefault("url", "https://example.org/")
        return fetchquest.Options(**kwargs)

    return factory
