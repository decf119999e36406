"""mimemail command-line interface.

What:
  Provide a Typer-based entry point to compose, inspect, render and send
  emails stored in the BRS binary format. The ``compose``, ``show``,
  ``render`` and ``send`` commands map one to one onto the library
  operations.

Why:
  Operators and cron jobs queue messages from shell scripts and need to check
  what a queued file contains or what exactly would be piped into
  ``sendmail`` without writing Python.

How:
  Each command loads the runtime configuration, reads or builds an
  :class:`~mimemail.core.message.Email`, and calls into
  :mod:`mimemail.core`. Library errors are logged through stdlib
  :mod:`logging`, echoed on stderr and turned into exit code ``1``.

Interfaces:
  ``app`` (Typer application), ``compose``, ``show``, ``render_command``,
  ``send``, ``main``.

Invariants & Safety:
  - Exit codes follow shell expectations (``0`` success, ``1`` failure).
  - ``render`` and ``send`` refuse a truncated file; ``show`` prints what
    was recovered and flags it.
  - ``render`` never runs external commands, so no plain-text alternative is
    derived for HTML bodies there.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from .config.loader import RuntimeConfigError, load_runtime_config
from .config.schema import RuntimeConfig
from .core.attachment import Attachment
from .core.message import Email, Priority
from .core.render import render
from .errors import MimeMailError
from .utils.ids import checksum


app = typer.Typer(help="Compose, inspect and send MIME emails")

LOGGER = logging.getLogger("mimemail.cli")

_CONFIG_OPTION = typer.Option(None, "--config", help="Path to mimemail.yaml")


def _fail(message: str, exc: Optional[BaseException] = None) -> typer.Exit:
    if exc is not None:
        LOGGER.error("%s: %s", message, exc)
        typer.echo(f"error: {message}: {exc}", err=True)
    else:
        LOGGER.error("%s", message)
        typer.echo(f"error: {message}", err=True)
    return typer.Exit(code=1)


def _load_config(path: Optional[Path]) -> RuntimeConfig:
    try:
        return load_runtime_config(path)
    except RuntimeConfigError as exc:
        raise _fail("runtime_load_failed", exc) from exc


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise _fail(f"cannot read {path}", exc) from exc


def _load_email(path: Path, data: bytes) -> Tuple[Email, bool]:
    try:
        return Email.load(data)
    except MimeMailError as exc:
        raise _fail(f"{path} is not a serialized email", exc) from exc


def _read_email(path: Path) -> Email:
    """Load a complete email; a truncated file is refused."""

    email, complete = _load_email(path, _read_bytes(path))
    if not complete:
        raise _fail(f"{path} is truncated")
    return email


def _parse_priority(value: str) -> Priority:
    """Accept ``3``, ``normal`` or ``NORMAL``."""

    text = value.strip()
    if text.isdigit():
        return Priority(int(text))
    try:
        return Priority[text.upper()]
    except KeyError as exc:
        raise ValueError(f"unknown priority {value!r}") from exc


def _split_pair(raw: str, separator: str, what: str) -> tuple[str, str]:
    name, found, value = raw.partition(separator)
    if not found or not name.strip():
        raise ValueError(f"{what} must look like NAME{separator}VALUE, got {raw!r}")
    return name.strip(), value.strip()


@app.command("compose")
def compose(
    output: Path = typer.Argument(..., help="Where to write the serialized email"),
    *,
    sender: str = typer.Option(..., "--from", help="From header (exactly one address)"),
    to: str = typer.Option(..., "--to", help="To header (one or more addresses)"),
    subject: str = typer.Option("", "--subject", help="Subject header"),
    body: Optional[Path] = typer.Option(None, "--body", help="File holding the message body"),
    html: bool = typer.Option(False, "--html", help="Treat the body as HTML"),
    attach: Optional[List[Path]] = typer.Option(None, "--attach", help="File to attach (repeatable)"),
    priority: Optional[str] = typer.Option(None, "--priority", help="bulk, low, normal, high, urgent or 1-5"),
    header: Optional[List[str]] = typer.Option(None, "--header", help="Extra header NAME:VALUE (repeatable)"),
    param: Optional[List[str]] = typer.Option(None, "--param", help="Parameter NAME=VALUE (repeatable)"),
    branding: bool = typer.Option(True, "--branding/--no-branding", help="Add X-Mailer headers"),
) -> None:
    """Build an email from command line options and serialize it.

    What:
      Validate the headers, encode the body as quoted-printable, attach the
      given files and write the BRS buffer to ``OUTPUT``.

    How:
      Attachments get a sniffed ``Content-Type`` and a
      ``Content-Disposition`` carrying the file name and modification time.
    """

    email = Email()
    try:
        email.set_from(sender)
        email.set_to(to)
        if subject:
            email.set_subject(subject)
        if priority is not None:
            email.set_priority(_parse_priority(priority))
        for raw in header or []:
            email.add_header(*_split_pair(raw, ":", "--header"))
        for raw in param or []:
            email.add_parameter(*_split_pair(raw, "=", "--param"))
        email.set_branding(branding)

        content = body.read_bytes() if body is not None else b""
        mime_type = "text/html; charset=utf-8" if html else "text/plain; charset=utf-8"
        body_part = Attachment()
        body_part.set_quoted_printable_data(content, mime_type)
        email.set_body_attachment(body_part)

        for path in attach or []:
            part = Attachment()
            part.set_data(path.read_bytes())
            part.set_content_disposition(str(path), int(path.stat().st_mtime))
            email.add_attachment(part)
    except (MimeMailError, ValueError, OSError) as exc:
        raise _fail("compose_failed", exc) from exc

    try:
        output.write_bytes(email.to_bytes())
    except OSError as exc:
        raise _fail(f"cannot write {output}", exc) from exc
    LOGGER.info("compose_completed output=%s attachments=%s", output, email.get_attachment_count())


@app.command("show")
def show(input_path: Path = typer.Argument(..., metavar="INPUT", help="Serialized email")) -> None:
    """Print the checksum, headers, attachments and parameters of a serialized email."""

    data = _read_bytes(input_path)
    email, complete = _load_email(input_path, data)
    if not complete:
        LOGGER.warning("email_truncated input=%s", input_path)
    typer.echo(f"Checksum: {checksum(data)}")
    typer.echo(f"Complete: {'yes' if complete else 'no (truncated)'}")
    typer.echo("Headers:")
    for name, value in email.get_all_headers().items():
        typer.echo(f"  {name}: {value}")
    typer.echo("Attachments:")
    for index in range(email.get_attachment_count()):
        part = email.get_attachment(index)
        typer.echo(
            f"  [{index}] {part.get_header('Content-Type') or '(no type)'} "
            f"{len(part.get_data())} bytes, {part.get_related_count()} related"
        )
    typer.echo("Parameters:")
    for name, value in email.get_all_parameters().items():
        typer.echo(f"  {name}={value}")
    typer.echo(f"Branding: {'on' if email.get_branding() else 'off'}")


@app.command("render")
def render_command(
    input_path: Path = typer.Argument(..., metavar="INPUT", help="Serialized email"),
    *,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write here instead of stdout"),
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Render a serialized email to the exact bytes ``sendmail`` would receive."""

    runtime = _load_config(config)
    email = _read_email(input_path)
    try:
        rendered = render(email, config=runtime)
    except MimeMailError as exc:
        raise _fail("render_failed", exc) from exc
    if output is None:
        typer.echo(rendered.payload, nl=False)
        return
    try:
        output.write_bytes(rendered.payload)
    except OSError as exc:
        raise _fail(f"cannot write {output}", exc) from exc


@app.command("send")
def send(
    input_path: Path = typer.Argument(..., metavar="INPUT", help="Serialized email"),
    *,
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Send a serialized email through the configured transport."""

    runtime = _load_config(config)
    email = _read_email(input_path)
    try:
        sent = email.send(config=runtime)
    except MimeMailError as exc:
        raise _fail("send_failed", exc) from exc
    if not sent:
        raise _fail("send_failed: the transport did not accept the message")
    LOGGER.info("send_completed input=%s", input_path)


def main() -> None:
    """Execute the Typer application entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
