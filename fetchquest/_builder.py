from __future__ import annotations

import logging
import os
import typing

import httpx

from ._exceptions import ArgumentError, FileAccessError
from ._models import (
    BodySource,
    NoBody,
    Options,
    RawBody,
    RequestDescriptor,
    TransportConfig,
    UploadBody,
)

logger = logging.getLogger("fetchquest.builder")

_SUPPORTED_SCHEMES = ("http", "https")


def build_transport_config(options: Options) -> TransportConfig:
    """Derive user agent, redirect and TLS policy from the options."""
    if options.disable_ssl_verification:
        logger.warning(
            "TLS certificate verification is DISABLED for %s; "
            "the server's identity will not be checked.",
            options.url,
        )
    return TransportConfig(
        user_agent=options.user_agent,
        follow_redirects=options.follow_redirects,
        verify_tls=not options.disable_ssl_verification,
    )


def validate_url(url: str) -> str:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ArgumentError(f"Invalid URL {url!r}: {exc}") from exc
    if parsed.scheme not in _SUPPORTED_SCHEMES:
        raise ArgumentError(
            f"Invalid URL {url!r}: scheme must be one of "
            f"{', '.join(_SUPPORTED_SCHEMES)}."
        )
    if not parsed.host:
        raise ArgumentError(f"Invalid URL {url!r}: no host given.")
    return url


def parse_header(header: str) -> tuple[str, str] | None:
    """Parse a curl-style 'Key: Value' string.

    Only the first colon separates the name from the value. Returns ``None``
    when there is no colon or either side is empty after trimming.
    """
    if ":" not in header:
        return None
    key, _, value = header.partition(":")
    key, value = key.strip(), value.strip()
    if not key or not value:
        return None
    return key, value


def assemble_headers(options: Options) -> list[tuple[str, str]]:
    """Cookie first, then ``-H`` headers in order, then the bearer token.

    Headers are additive: repeated names are all sent.
    """
    headers: list[tuple[str, str]] = []

    if options.cookie is not None:
        headers.append(("Cookie", options.cookie))

    for raw in options.headers:
        parsed = parse_header(raw)
        if parsed is None:
            logger.debug("Dropping malformed header %r", raw)
            continue
        headers.append(parsed)

    if options.bearer_token is not None:
        headers.append(("Authorization", f"Bearer {options.bearer_token}"))

    return headers


def open_upload(path: str) -> UploadBody:
    try:
        stream: typing.BinaryIO = open(path, "rb")
    except OSError as exc:
        raise FileAccessError(
            f"Failed to open upload file {path!r}: {exc.strerror or exc}"
        ) from exc
    return UploadBody(stream=stream, filename=os.path.basename(path))


def resolve_body(options: Options) -> BodySource:
    """Pick the single body source for the request.

    A form-file upload takes precedence over ``--data``; when both are given
    the raw data is ignored.
    """
    if options.form_file is not None:
        if options.data is not None:
            logger.warning(
                "Both --form-file and --data were given; uploading %s and "
                "ignoring --data.",
                options.form_file,
            )
        return open_upload(options.form_file)
    if options.data is not None:
        return RawBody(options.data.encode("utf-8"))
    return NoBody()


def build_request(options: Options) -> tuple[RequestDescriptor, TransportConfig]:
    """Turn options into a request descriptor plus transport configuration.

    The upload file (if any) is opened here; nothing touches the network.
    """
    url = validate_url(options.url)
    config = build_transport_config(options)
    headers = assemble_headers(options)
    body = resolve_body(options)

    descriptor = RequestDescriptor(
        method=options.method,
        url=url,
        headers=tuple(headers),
        body=body,
    )
    logger.debug(
        "Built %s %s with %d header(s), body=%s",
        descriptor.method.value,
        descriptor.url,
        len(descriptor.headers),
        body.kind,
    )
    return descriptor, config
