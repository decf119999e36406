"""Hand rendered messages to a sendmail-compatible mail transport agent."""
from __future__ import annotations

from typing import Sequence

from ..errors import InvalidArgument
from ..utils.logging import get_logger
from .process import ProcessResult, ProcessRunner


_LOGGER = get_logger("mimemail.sendmail")


class SendmailTransport:
    """Invoke ``sendmail -f <sender> <recipient>...`` with the message on stdin.

    The exit status is returned untouched; deciding whether a non-zero status
    is fatal belongs to the caller.
    """

    def __init__(self, runner: ProcessRunner, command: str = "sendmail") -> None:
        self.runner = runner
        self.command = command

    def deliver(self, sender: str, recipients: Sequence[str], payload: bytes) -> ProcessResult:
        """Submit ``payload`` for delivery.

        Raises:
          InvalidArgument: When the envelope is empty.
          StartFailure: When the transport cannot be launched.
        """

        if not sender or not recipients:
            raise InvalidArgument("sendmail needs a sender and at least one recipient")
        args = ["-f", sender, *recipients]
        _LOGGER.debug("sendmail_invoked", command=self.command, recipient_count=len(recipients))
        return self.runner.run(self.command, args, payload)
