from __future__ import annotations

import contextlib
import logging
import typing

import httpx

from ._exceptions import ArgumentError, TransportError
from ._models import (
    RawBody,
    RequestDescriptor,
    ResponseHandle,
    TransportConfig,
    UploadBody,
)

logger = logging.getLogger("fetchquest.transport")


class Transport(typing.Protocol):
    """Sends one request and returns once the response headers have arrived."""

    async def send(
        self, request: RequestDescriptor, config: TransportConfig
    ) -> ResponseHandle: ...


class HTTPXTransport:
    """:class:`Transport` backed by a one-shot ``httpx.AsyncClient``.

    A custom ``httpx`` transport (e.g. ``httpx.MockTransport``) may be given
    for testing.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    def _create_client(self, config: TransportConfig) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            follow_redirects=config.follow_redirects,
            max_redirects=config.max_redirects,
            verify=config.verify_tls,
            transport=self._transport,
        )

    @staticmethod
    def _build_request(
        client: httpx.AsyncClient, request: RequestDescriptor
    ) -> httpx.Request:
        kwargs: dict[str, typing.Any] = {"headers": list(request.headers)}

        body = request.body
        if isinstance(body, UploadBody):
            kwargs["files"] = {
                body.field_name: (body.filename, body.stream, body.content_type)
            }
        elif isinstance(body, RawBody):
            kwargs["content"] = body.content

        return client.build_request(request.method.value, request.url, **kwargs)

    async def send(
        self, request: RequestDescriptor, config: TransportConfig
    ) -> ResponseHandle:
        stack = contextlib.AsyncExitStack()
        try:
            try:
                client = await stack.enter_async_context(self._create_client(config))
                httpx_request = self._build_request(client, request)
            except (UnicodeEncodeError, httpx.InvalidURL) as exc:
                raise ArgumentError(f"Failed to build request: {exc}") from exc

            logger.debug("Sending %s %s", httpx_request.method, httpx_request.url)
            try:
                response = await client.send(httpx_request, stream=True)
            except httpx.HTTPError as exc:
                raise TransportError(f"Failed to send request: {exc}") from exc
            stack.push_async_callback(response.aclose)
        except BaseException:
            await stack.aclose()
            raise

        logger.debug(
            "Received %s %s %s",
            response.http_version,
            response.status_code,
            response.reason_phrase,
        )
        return ResponseHandle(
            response.status_code,
            response.headers.multi_items(),
            _iter_body(response),
            http_version=response.http_version,
            reason_phrase=response.reason_phrase,
            encoding=response.charset_encoding,
            on_close=stack.aclose,
        )


async def _iter_body(response: httpx.Response) -> typing.AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.HTTPError as exc:
        raise TransportError(f"Failed to load response body: {exc}") from exc
