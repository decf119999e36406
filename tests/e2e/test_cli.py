"""End-to-end tests driving the ``mimemail`` Typer application.

What:
  Compose an email file through the CLI, then inspect, render and send it
  with the other commands.

Why:
  Operators use the CLI from shell scripts; exit codes and the files it writes
  are the contract they depend on.

How:
  Invoke :data:`mimemail.cli.app` through :class:`typer.testing.CliRunner`
  inside the temporary working directory set up by ``tests/conftest.py``.
  ``send`` is pointed at a recording runner instead of a real ``sendmail``.

Interfaces:
  ``test_compose_show_render``, ``test_send_*``, ``test_compose_rejects_*``.
"""

import hashlib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from mimemail.cli import app
from mimemail.core.message import Email
from mimemail.transport.process import ProcessResult

RUNNER = CliRunner()


class _RecordingRunner:
    def __init__(self, exit_code: int = 0) -> None:
        self.exit_code = exit_code
        self.calls = []

    def run(self, command, args, stdin):
        self.calls.append((command, list(args), stdin))
        return ProcessResult(exit_code=self.exit_code)


def _compose(tmp_path: Path, *extra: str):
    body = tmp_path / "body.txt"
    body.write_text("Hello from the CLI\n")
    report = tmp_path / "report.pdf"
    report.write_bytes(b"%PDF-1.4 fake report")
    output = tmp_path / "queued.brs"
    result = RUNNER.invoke(
        app,
        [
            "compose",
            str(output),
            "--from",
            "Ops <ops@example.com>",
            "--to",
            "dev@example.org",
            "--subject",
            "Nightly",
            "--body",
            str(body),
            "--attach",
            str(report),
            "--priority",
            "high",
            "--header",
            "X-Job: nightly-42",
            "--param",
            "run=42",
            *extra,
        ],
    )
    return result, output


def test_compose_show_render(tmp_path):
    result, output = _compose(tmp_path)
    assert result.exit_code == 0, result.output

    email = Email.from_bytes(output.read_bytes())
    assert email.get_header("Subject") == "Nightly"
    assert email.get_header("X-Priority") == "4 (High)"
    assert email.get_header("X-Job") == "nightly-42"
    assert email.get_parameter("run") == "42"
    assert email.get_attachment_count() == 2
    assert email.get_attachment(1).get_header("Content-Type") == "application/pdf"
    assert "filename=report.pdf" in email.get_attachment(1).get_header("Content-Disposition")

    shown = RUNNER.invoke(app, ["show", str(output)])
    assert shown.exit_code == 0
    assert f"Checksum: sha256:{hashlib.sha256(output.read_bytes()).hexdigest()}" in shown.output
    assert "Complete: yes" in shown.output
    assert "Subject: Nightly" in shown.output
    assert "[1] application/pdf" in shown.output
    assert "run=42" in shown.output

    rendered_path = tmp_path / "out.eml"
    rendered = RUNNER.invoke(app, ["render", str(output), "--output", str(rendered_path)])
    assert rendered.exit_code == 0, rendered.output
    payload = rendered_path.read_bytes()
    assert b"Content-Type: multipart/mixed;" in payload
    assert b"Content-Type: application/pdf; name=report.pdf" in payload
    assert payload.endswith(b"\n.\n")


def test_render_to_stdout(tmp_path):
    _, output = _compose(tmp_path, "--no-branding")
    rendered = RUNNER.invoke(app, ["render", str(output)])
    assert rendered.exit_code == 0
    assert "Subject: Nightly" in rendered.output
    assert "X-Mailer" not in rendered.output


@pytest.mark.parametrize("exit_code,expected", [(0, 0), (75, 1)])
def test_send_maps_transport_status(tmp_path, monkeypatch, exit_code, expected):
    _, output = _compose(tmp_path)
    recorder = _RecordingRunner(exit_code)
    monkeypatch.setattr("mimemail.core.sender.SubprocessRunner", lambda timeout=None: recorder)

    result = RUNNER.invoke(app, ["send", str(output)])
    assert result.exit_code == expected
    command, args, stdin = recorder.calls[-1]
    assert command == "sendmail"
    assert args == ["-f", "ops@example.com", "dev@example.org"]
    assert b"Subject: Nightly" in stdin


def test_send_honours_config_file(tmp_path, monkeypatch):
    _, output = _compose(tmp_path)
    config = tmp_path / "custom.yaml"
    config.write_text("transport:\n  command: /opt/mta/bin/sendmail\n")
    recorder = _RecordingRunner()
    monkeypatch.setattr("mimemail.core.sender.SubprocessRunner", lambda timeout=None: recorder)

    result = RUNNER.invoke(app, ["send", str(output), "--config", str(config)])
    assert result.exit_code == 0
    assert recorder.calls[-1][0] == "/opt/mta/bin/sendmail"


def test_send_with_broken_config_fails(tmp_path):
    _, output = _compose(tmp_path)
    config = tmp_path / "broken.yaml"
    config.write_text("transport: [oops")
    result = RUNNER.invoke(app, ["send", str(output), "--config", str(config)])
    assert result.exit_code == 1


@pytest.mark.parametrize(
    "override",
    [
        ["--from", "not-an-email"],
        ["--to", ""],
        ["--priority", "extreme"],
        ["--header", "no-colon-here"],
        ["--param", "=value"],
    ],
)
def test_compose_rejects_invalid_input(tmp_path, override):
    output = tmp_path / "never.brs"
    args = ["compose", str(output), "--from", "a@b.com", "--to", "c@d.com", *override]
    result = RUNNER.invoke(app, args)
    assert result.exit_code == 1
    assert not output.exists()


def test_show_rejects_garbage(tmp_path):
    garbage = tmp_path / "garbage.bin"
    garbage.write_bytes(b"not a brs buffer")
    result = RUNNER.invoke(app, ["show", str(garbage)])
    assert result.exit_code == 1


def test_truncated_file_is_shown_but_not_rendered(tmp_path):
    _, output = _compose(tmp_path)
    truncated = tmp_path / "truncated.brs"
    truncated.write_bytes(output.read_bytes()[:-5])

    shown = RUNNER.invoke(app, ["show", str(truncated)])
    assert shown.exit_code == 0
    assert "Complete: no (truncated)" in shown.output
    assert "Subject: Nightly" in shown.output

    rendered = RUNNER.invoke(app, ["render", str(truncated)])
    assert rendered.exit_code == 1
    assert "Content-Type" not in rendered.output
