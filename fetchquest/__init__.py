# ruff: noqa: I001
from .__version__ import __description__, __title__, __version__
from ._builder import (
    assemble_headers,
    build_request,
    build_transport_config,
    parse_header,
    resolve_body,
)
from ._exceptions import (
    ArgumentError,
    EncodingError,
    FetchError,
    FileAccessError,
    OutputWriteError,
    Phase,
    TransportError,
)
from ._models import (
    BodySource,
    Method,
    NoBody,
    Options,
    RawBody,
    RequestDescriptor,
    ResponseHandle,
    TransportConfig,
    UploadBody,
)
from ._pipeline import Fetch, State
from ._transport import HTTPXTransport, Transport
from ._writer import OutputSink, ResponseWriter, render_headers
from .cli import main

_EXCLUDED_FROM_ALL = {"cli", "main"}

__all__ = sorted(  # pyright: ignore[reportUnsupportedDunderAll]
    (
        member
        for member in list(vars().keys())
        if (
            not member.startswith("_")
            or member in ["__description__", "__title__", "__version__"]
        )
        and member not in _EXCLUDED_FROM_ALL
    ),
    key=str.casefold,
)
