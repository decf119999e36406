"""Pytest fixtures for unit tests.

What:
  Make ``tests/unit`` importable (for :mod:`fakes`) and expose fixtures that
  build the emails most tests start from.

Why:
  Many suites need a valid message (From, To, body) before they can exercise
  rendering, sending or serialization; building it in one place keeps the
  tests focused on the behaviour under test.

Interfaces:
  :func:`runner`, :func:`text_email`, :func:`html_email`, :func:`seeded_rng`.
"""

import random
import sys
from pathlib import Path

import pytest

UNIT_DIR = Path(__file__).resolve().parent
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

from fakes import FakeRunner

from mimemail.core.attachment import Attachment
from mimemail.core.message import Email


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def text_email() -> Email:
    """A minimal plain-text message: From, To, Subject and a body."""

    email = Email()
    email.set_from("a@b.com")
    email.set_to("c@d.com")
    email.set_subject("Hi")
    body = Attachment()
    body.set_data(b"hello", "text/plain; charset=utf-8")
    email.set_body_attachment(body)
    return email


@pytest.fixture
def html_email() -> Email:
    """An HTML message whose body is quoted-printable encoded."""

    email = Email()
    email.set_from("Alexis <alexis@example.com>")
    email.set_to("Bo <bo@example.org>, carol@example.net")
    email.set_subject("Report")
    body = Attachment()
    body.set_quoted_printable_data(b"<html><body><p>Hello Bo</p></body></html>", "text/html; charset=utf-8")
    email.set_body_attachment(body)
    return email
