"""Send an email: derive the text alternative, render, hand to the transport.

What:
  :func:`send_email` is the blocking operation behind
  :meth:`mimemail.core.message.Email.send`.

Why:
  Delivery problems (no ``sendmail``, a rejected message) are routine in
  production and must not be confused with programming errors. They are
  therefore reported as ``False`` and logged, while missing headers or a
  missing body still raise.

How:
  1. Check the preconditions (:class:`~mimemail.errors.MissingParameter`).
  2. For an HTML body, run the ``html2text`` filter on the decoded payload;
     a failure only costs the plain-text alternative.
  3. Render with :func:`mimemail.core.render.render`.
  4. Pipe the result into the transport; exit status 0 means accepted.

Interfaces:
  :func:`send_email`, :func:`plain_text_alternative`.

Invariants & Safety:
  - No retries and no cancellation; timeouts come from the runner, built
    from ``html2text.timeout_s`` and ``transport.timeout_s`` by default.
"""
from __future__ import annotations

from typing import Optional

from ..config.loader import get_runtime_config
from ..config.schema import RuntimeConfig
from ..errors import StartFailure, TransportFailure
from ..transport.html2text import Html2TextConverter
from ..transport.process import ProcessRunner, SubprocessRunner
from ..transport.sendmail import SendmailTransport
from ..utils.logging import get_logger
from .attachment import CONTENT_TYPE
from .message import Email
from .render import check_preconditions, render


_LOGGER = get_logger("mimemail.sender")


def plain_text_alternative(
    email: Email,
    runner: ProcessRunner,
    config: RuntimeConfig,
) -> str:
    """Return the text version of an HTML body, ``""`` when unavailable.

    Conversion failures are logged and swallowed: a message without a text
    alternative is still a valid message.
    """

    body = email.get_attachment(0)
    if not body.get_header(CONTENT_TYPE).strip().lower().startswith("text/html"):
        return ""
    if not config.html2text.enabled:
        return ""
    converter = Html2TextConverter(runner, config.html2text.command, config.html2text.args)
    try:
        return converter.convert(body.get_decoded_data())
    except (StartFailure, TransportFailure) as exc:
        _LOGGER.warning("html2text_failed", command=config.html2text.command, error=str(exc))
        return ""


def send_email(
    email: Email,
    *,
    runner: Optional[ProcessRunner] = None,
    config: Optional[RuntimeConfig] = None,
) -> bool:
    """Render ``email`` and submit it to the mail transport.

    Args:
      email: Message to send.
      runner: Process runner for both external commands; by default a
        :class:`SubprocessRunner` per command with the configured timeout.
      config: Runtime configuration; defaults to the cached one.

    Returns:
      ``True`` when the transport accepted the message, ``False`` when it
      could not be started, timed out or exited with a non-zero status.

    Raises:
      MissingParameter: When ``From``, ``To`` or the body is missing.
      InvalidArgument: When the envelope addresses cannot be parsed.
    """

    check_preconditions(email)
    settings = config or get_runtime_config()
    html_runner = runner or SubprocessRunner(timeout=settings.html2text.timeout_s)
    mta_runner = runner or SubprocessRunner(timeout=settings.transport.timeout_s)

    plain_text = plain_text_alternative(email, html_runner, settings)
    rendered = render(email, plain_text=plain_text, config=settings)

    transport = SendmailTransport(mta_runner, settings.transport.command)
    try:
        result = transport.deliver(rendered.sender, rendered.recipients, rendered.payload)
    except StartFailure as exc:
        _LOGGER.error("transport_start_failed", command=settings.transport.command, error=str(exc))
        return False
    except TransportFailure as exc:
        _LOGGER.error("transport_failed", command=settings.transport.command, error=str(exc))
        return False
    if result.exit_code != 0:
        _LOGGER.error(
            "transport_rejected",
            command=settings.transport.command,
            exit_code=result.exit_code,
            stderr=result.stderr.decode("utf-8", errors="replace")[:512],
        )
        return False
    _LOGGER.info(
        "email_sent",
        recipient_count=len(rendered.recipients),
        size=len(rendered.payload),
        attachment_count=email.get_attachment_count(),
    )
    return True
