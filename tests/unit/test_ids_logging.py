"""Unit tests for boundary generation and the structured JSON logger."""

import io
import json
import random
import string

from mimemail.utils.ids import BOUNDARY_RANDOM_LENGTH, checksum, new_boundary
from mimemail.utils.logging import REDACTED, JsonLogger, get_logger


def test_new_boundary_shape_and_determinism():
    token = new_boundary("=MimeMail=", random.Random(7))
    assert token.startswith("=MimeMail=")
    suffix = token[len("=MimeMail="):]
    assert len(suffix) == BOUNDARY_RANDOM_LENGTH
    assert set(suffix) <= set(string.ascii_letters + string.digits)
    assert new_boundary("=MimeMail=", random.Random(7)) == token


def test_new_boundary_without_rng_varies():
    assert len({new_boundary("p") for _ in range(5)}) > 1


def test_checksum_is_namespaced():
    digest = checksum(b"abc")
    assert digest == "sha256:ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_json_logger_redacts_sensitive_keys():
    """
    What:
        Ensure payload-bearing keys never reach the log stream.

    Why:
        Email bodies and attachments carry personal data; the logger is the
        last line of defence against leaking them.

    How:
        Log an event with top-level and nested sensitive keys into a
        :class:`io.StringIO` and inspect the decoded JSON line.
    """

    stream = io.StringIO()
    logger = JsonLogger(stream=stream, component="test")
    logger.warning("event_name", body="secret", meta={"payload": "x", "size": 3}, count=2)
    entry = json.loads(stream.getvalue())
    assert entry["lvl"] == "WARN"
    assert entry["msg"] == "event_name"
    assert entry["component"] == "test"
    assert entry["body"] == REDACTED
    assert entry["meta"] == {"payload": REDACTED, "size": 3}
    assert entry["count"] == 2


def test_json_logger_honours_min_level():
    stream = io.StringIO()
    logger = JsonLogger(stream=stream, min_level="WARN")
    logger.debug("hidden")
    logger.info("hidden")
    logger.error("shown")
    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["lvl"] == "ERROR"


def test_get_logger_defaults_to_stderr(capsys):
    get_logger("mimemail.test").info("hello", size=1)
    captured = capsys.readouterr()
    assert json.loads(captured.err)["component"] == "mimemail.test"
