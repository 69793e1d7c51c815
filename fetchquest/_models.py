from __future__ import annotations

import dataclasses
import enum
import typing

DEFAULT_USER_AGENT = "RustHttpClient/0.1.0"
MAX_REDIRECTS = 10
UPLOAD_FIELD_NAME = "file"
UPLOAD_CONTENT_TYPE = "application/octet-stream"


class Method(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: str | Method) -> Method:
        if isinstance(value, Method):
            return value
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unsupported request method: {value!r}") from None


@dataclasses.dataclass(frozen=True)
class Options:
    """Everything one invocation needs, as handed over by the command line."""

    url: str
    method: Method = Method.GET
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = False
    disable_ssl_verification: bool = False
    cookie: str | None = None
    bearer_token: str | None = None
    headers: tuple[str, ...] = ()
    data: str | None = None
    form_file: str | None = None
    output: str | None = None
    include_headers: bool = False
    head: bool = False
    silent: bool = False
    verbose: bool = False


@dataclasses.dataclass(frozen=True)
class TransportConfig:
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = False
    max_redirects: int = MAX_REDIRECTS
    verify_tls: bool = True


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class NoBody:
    kind: typing.ClassVar[str] = "none"

    def close(self) -> None:
        pass


@dataclasses.dataclass(frozen=True)
class RawBody:
    content: bytes
    kind: typing.ClassVar[str] = "raw"

    def close(self) -> None:
        pass


@dataclasses.dataclass(frozen=True)
class UploadBody:
    """A file streamed as the single part of a multipart/form-data body.

    The stream is read once, in bounded chunks, by whoever sends the request.
    """

    stream: typing.BinaryIO
    filename: str
    field_name: str = UPLOAD_FIELD_NAME
    content_type: str = UPLOAD_CONTENT_TYPE
    kind: typing.ClassVar[str] = "upload"

    def close(self) -> None:
        self.stream.close()


BodySource = typing.Union[NoBody, RawBody, UploadBody]


@dataclasses.dataclass(frozen=True)
class RequestDescriptor:
    method: Method
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: BodySource = NoBody()

    def close(self) -> None:
        self.body.close()


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ResponseHandle:
    """Status and headers of a received response, with a body read at most once."""

    def __init__(
        self,
        status_code: int,
        headers: typing.Iterable[tuple[str, str]],
        stream: typing.AsyncIterable[bytes],
        *,
        http_version: str = "HTTP/1.1",
        reason_phrase: str = "",
        encoding: str | None = None,
        on_close: typing.Callable[[], typing.Awaitable[None]] | None = None,
    ) -> None:
        self.status_code = status_code
        self.headers = list(headers)
        self.http_version = http_version
        self.reason_phrase = reason_phrase
        self.encoding = encoding
        self._stream = stream
        self._on_close = on_close
        self._consumed = False
        self._closed = False

    @property
    def status_line(self) -> str:
        return f"{self.http_version} {self.status_code} {self.reason_phrase}".rstrip()

    @property
    def is_consumed(self) -> bool:
        return self._consumed

    async def aread(self) -> bytes:
        if self._consumed:
            raise RuntimeError("The response body has already been read.")
        self._consumed = True
        chunks = [chunk async for chunk in self._stream]
        return b"".join(chunks)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close()

    def __repr__(self) -> str:
        reason = f" {self.reason_phrase}" if self.reason_phrase else ""
        return f"<ResponseHandle [{self.status_code}{reason}]>"
