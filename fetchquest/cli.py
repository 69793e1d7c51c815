from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from .__version__ import __version__
from ._exceptions import FetchError
from ._models import DEFAULT_USER_AGENT, Method, Options
from ._pipeline import Fetch
from ._transport import HTTPXTransport

_log_handler: logging.Handler | None = None


def configure_logging(verbose: bool) -> None:
    """Send ``fetchquest`` log records to stderr; DEBUG when verbose."""
    global _log_handler

    logger = logging.getLogger("fetchquest")
    if _log_handler is not None:
        logger.removeHandler(_log_handler)

    _log_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    logger.addHandler(_log_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def report_error(exc: FetchError, *, no_color: bool = False) -> None:
    if not no_color and sys.stderr.isatty():
        console = Console(stderr=True)
        message = Text()
        message.append(type(exc).__name__, style="bold red")
        message.append(f": {exc}")
        console.print(message)
    else:
        click.echo(f"{type(exc).__name__}: {exc}", err=True)


@click.command(help="A scriptable, curl-like HTTP client.")
@click.version_option(__version__, prog_name="fetchquest")
@click.argument("url")
@click.option(
    "-I",
    "--head",
    is_flag=True,
    default=False,
    help="Show headers only, skip the body.",
)
@click.option(
    "-i",
    "--include-headers",
    is_flag=True,
    default=False,
    help="Write the response headers before the body.",
)
@click.option(
    "-A",
    "--user-agent",
    default=DEFAULT_USER_AGENT,
    show_default=True,
    envvar="FETCHQUEST_USER_AGENT",
    help="User-Agent header to send.",
)
@click.option(
    "-X",
    "--request-type",
    type=click.Choice(["get", "post", "put", "delete"], case_sensitive=False),
    default="get",
    show_default=True,
    help="HTTP method.",
)
@click.option(
    "-L", "--follow-redirects", is_flag=True, default=False, help="Follow redirects."
)
@click.option(
    "-b",
    "--cookie",
    default=None,
    envvar="FETCHQUEST_COOKIE",
    help="Cookie header value.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging.")
@click.option("-s", "--silent", is_flag=True, default=False, help="Write no output.")
@click.option("-o", "--output", default=None, help="Write output to a file.")
@click.option(
    "-H",
    "--header",
    "headers",
    multiple=True,
    help='Add a header, e.g. -H "X-Api-Key: secret".',
)
@click.option(
    "-f", "--form-file", default=None, help="Upload a file as multipart form data."
)
@click.option("-d", "--data", default=None, help="Raw request body.")
@click.option(
    "--disable-ssl-verification",
    is_flag=True,
    default=False,
    help="Skip TLS certificate verification (insecure).",
)
@click.option(
    "--bearer-token",
    default=None,
    envvar="FETCHQUEST_BEARER_TOKEN",
    help="Send 'Authorization: Bearer <token>'.",
)
@click.option(
    "--no-color", is_flag=True, default=False, help="Disable colored error output."
)
def main(
    url: str,
    head: bool,
    include_headers: bool,
    user_agent: str,
    request_type: str,
    follow_redirects: bool,
    cookie: str | None,
    verbose: bool,
    silent: bool,
    output: str | None,
    headers: tuple[str, ...],
    form_file: str | None,
    data: str | None,
    disable_ssl_verification: bool,
    bearer_token: str | None,
    no_color: bool,
) -> None:
    configure_logging(verbose)

    options = Options(
        url=url,
        method=Method.parse(request_type),
        user_agent=user_agent,
        follow_redirects=follow_redirects,
        disable_ssl_verification=disable_ssl_verification,
        cookie=cookie,
        bearer_token=bearer_token,
        headers=headers,
        data=data,
        form_file=form_file,
        output=output,
        include_headers=include_headers,
        head=head,
        silent=silent,
        verbose=verbose,
    )

    try:
        asyncio.run(Fetch(options, transport=HTTPXTransport()).run())
    except FetchError as exc:
        report_error(exc, no_color=no_color)
        sys.exit(1)
