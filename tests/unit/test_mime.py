"""
Module: tests/unit/test_mime.py

What:
    Exercise the MIME helpers: type sniffing, the quoted-printable codec and
    its flags, RFC 2822 dates, and ``;``-parameter header values.

Why:
    The renderer trusts these helpers for every byte it does not copy from an
    attachment verbatim; a regression here silently corrupts outgoing mail.
"""

from datetime import datetime, timedelta, timezone

import pytest

from mimemail.utils.mime import (
    DEFAULT_BINARY_TYPE,
    DEFAULT_TEXT_TYPE,
    HeaderValue,
    QuotedPrintableFlags,
    detect_mime_type,
    format_email_date,
    parse_header_value,
    quoted_printable_decode,
    quoted_printable_encode,
)


@pytest.mark.parametrize(
    "data,expected",
    [
        (b"%PDF-1.7\n...", "application/pdf"),
        (b"\x89PNG\r\n\x1a\n\x00\x00", "image/png"),
        (b"\xff\xd8\xff\xe0JFIF", "image/jpeg"),
        (b"GIF89a....", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"<!DOCTYPE html><html></html>", "text/html; charset=utf-8"),
        (b"<?xml version='1.0'?><a/>", "text/xml; charset=utf-8"),
        (b"hello world\n", DEFAULT_TEXT_TYPE),
        (b"", DEFAULT_TEXT_TYPE),
        (b"\x00\x01\x02\xff\xfe", DEFAULT_BINARY_TYPE),
        (b"abc\x00def", DEFAULT_BINARY_TYPE),
    ],
)
def test_detect_mime_type(data, expected):
    assert detect_mime_type(data) == expected


def test_quoted_printable_encodes_non_ascii():
    assert quoted_printable_encode("café".encode("utf-8")) == b"caf=C3=A9"
    assert quoted_printable_decode(b"caf=C3=A9") == "café".encode("utf-8")


def test_quoted_printable_soft_breaks_long_lines():
    encoded = quoted_printable_encode(b"x" * 200)
    assert all(len(line) <= 76 for line in encoded.split(b"\n"))
    assert quoted_printable_decode(encoded) == b"x" * 200


def test_lone_period_is_escaped_only_with_flag():
    data = b"first\n.\nlast"
    assert quoted_printable_encode(data, QuotedPrintableFlags.LF_ONLY | QuotedPrintableFlags.NO_LONE_PERIOD) == b"first\n=2E\nlast"
    assert quoted_printable_encode(data, QuotedPrintableFlags.LF_ONLY) == b"first\n.\nlast"


def test_line_endings_follow_lf_only_flag():
    assert quoted_printable_encode(b"a\nb", QuotedPrintableFlags.LF_ONLY) == b"a\nb"
    assert quoted_printable_encode(b"a\nb", QuotedPrintableFlags.NONE) == b"a\r\nb"
    assert quoted_printable_encode(b"a\r\nb", QuotedPrintableFlags.LF_ONLY) == b"a\nb"


def test_binary_flag_encodes_line_breaks():
    encoded = quoted_printable_encode(b"a\r\nb", QuotedPrintableFlags.BINARY | QuotedPrintableFlags.LF_ONLY)
    assert b"=0D=0A" in encoded
    assert quoted_printable_decode(encoded) == b"a\r\nb"


def test_format_email_date_variants():
    assert format_email_date(0) == "Thu, 01 Jan 1970 00:00:00 +0000"
    naive = datetime(2015, 9, 29, 16, 12, 15)
    assert format_email_date(naive) == "Tue, 29 Sep 2015 16:12:15 +0000"
    pacific = datetime(2015, 9, 29, 16, 12, 15, tzinfo=timezone(timedelta(hours=-8)))
    assert format_email_date(pacific) == "Wed, 30 Sep 2015 00:12:15 +0000"
    assert format_email_date(None).endswith("+0000")


def test_header_value_parsing_honours_quotes():
    value = HeaderValue.parse('attachment; filename="a; b.pdf"; size=3')
    assert value.value == "attachment"
    assert value.get_parameter("FILENAME") == "a; b.pdf"
    assert value.get_parameter("size") == "3"
    assert value.get_parameter("missing") == ""


def test_header_value_parses_folded_boundary():
    value = parse_header_value('multipart/mixed;\n  boundary="=MimeMail=abc"')
    assert value.value == "multipart/mixed"
    assert value.get_parameter("boundary") == "=MimeMail=abc"


def test_header_value_set_parameter_and_format():
    value = HeaderValue.parse("application/pdf; Name=old.pdf")
    value.set_parameter("name", "new report.pdf")
    value.set_parameter("charset", "utf-8")
    assert value.to_string() == 'application/pdf; Name="new report.pdf"; charset=utf-8'
    assert parse_header_value(None).value == ""
