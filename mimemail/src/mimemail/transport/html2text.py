"""Plain-text alternative of an HTML body through the ``html2text`` filter."""
from __future__ import annotations

from typing import Optional, Sequence

from ..errors import TransportFailure
from .process import ProcessRunner


DEFAULT_ARGS = ("-nobs", "-utf8", "-style", "pretty", "-width", "70")


class Html2TextConverter:
    """Pipe HTML into an external converter and read text back.

    Args:
      runner: Process runner executing the command.
      command: Converter executable.
      args: Extra command line arguments.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        command: str = "html2text",
        args: Optional[Sequence[str]] = None,
    ) -> None:
        self.runner = runner
        self.command = command
        self.args = list(DEFAULT_ARGS if args is None else args)

    def convert(self, html: bytes) -> str:
        """Return the text rendition of ``html``.

        Raises:
          StartFailure: When the converter cannot be launched.
          TransportFailure: When it exits with a non-zero status.
        """

        result = self.runner.run(self.command, self.args, html)
        if result.exit_code != 0:
            raise TransportFailure(
                f"{self.command} exited with status {result.exit_code}",
                exit_code=result.exit_code,
            )
        return result.stdout.decode("utf-8", errors="replace")
