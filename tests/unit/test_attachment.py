"""Unit tests for :class:`mimemail.core.attachment.Attachment`."""

import io

import pytest

from mimemail.core.attachment import Attachment
from mimemail.errors import InvalidArgument, OutOfRange, TooManyLevels
from mimemail.utils.brs import Deserializer, Serializer

EPOCH_PLUS_DAY = 86400
EPOCH_PLUS_DAY_TEXT = "Fri, 02 Jan 1970 00:00:00 +0000"


def _image(name: str = "logo.png") -> Attachment:
    image = Attachment()
    image.set_data(b"\x89PNG\r\n\x1a\n" + b"\x00" * 8)
    image.add_header("Content-ID", f"<{name}>")
    return image


def test_set_data_sniffs_missing_type():
    part = Attachment()
    part.set_data(b"%PDF-1.4 fake")
    assert part.get_header("content-type") == "application/pdf"
    assert part.get_data() == b"%PDF-1.4 fake"


def test_set_data_keeps_explicit_type_and_accepts_custom_sniffer():
    part = Attachment()
    part.set_data(b"whatever", "application/x-custom")
    assert part.get_header("Content-Type") == "application/x-custom"
    part.set_data("texte", sniffer=lambda data: "text/x-sniffed")
    assert part.get_data() == b"texte"
    assert part.get_header("Content-Type") == "text/x-sniffed"


def test_quoted_printable_data_sets_transfer_encoding():
    part = Attachment()
    part.set_quoted_printable_data("Grüße\n".encode("utf-8"), "text/plain; charset=utf-8")
    assert part.get_header("Content-Transfer-Encoding") == "quoted-printable"
    assert part.get_data() == b"Gr=C3=BC=C3=9Fe\n"
    assert part.get_decoded_data() == "Grüße\n".encode("utf-8")


def test_quoted_printable_sniffs_raw_payload():
    part = Attachment()
    part.set_quoted_printable_data(b"<html><body>x</body></html>")
    assert part.get_header("Content-Type").startswith("text/html")


def test_content_disposition_strips_path():
    part = Attachment()
    part.set_content_disposition("/tmp/evil/../secret.pdf", EPOCH_PLUS_DAY)
    value = part.get_header("Content-Disposition")
    assert value == f'attachment; filename=secret.pdf; modification-date="{EPOCH_PLUS_DAY_TEXT}"'
    assert "/" not in value.split(";")[1]


def test_content_disposition_windows_path_and_encoding():
    part = Attachment()
    part.set_content_disposition("C:\\Users\\me\\my report.pdf", EPOCH_PLUS_DAY, "inline")
    assert part.get_header("Content-Disposition").startswith("inline; filename=my%20report.pdf;")


def test_content_disposition_without_filename_or_date():
    part = Attachment()
    part.set_content_disposition("/only/a/dir/", 0)
    value = part.get_header("Content-Disposition")
    assert value.startswith('attachment; modification-date="')
    assert "filename" not in value


def test_content_disposition_requires_type():
    with pytest.raises(InvalidArgument):
        Attachment().set_content_disposition("a.txt", EPOCH_PLUS_DAY, "")


def test_add_related_stores_independent_copy():
    body = Attachment()
    body.set_data(b"<html></html>", "text/html")
    image = _image()
    body.add_related(image)
    image.add_header("Content-ID", "<changed>")
    stored = body.get_related(0)
    assert body.get_related_count() == 1
    assert stored.is_sub_attachment
    assert not image.is_sub_attachment
    assert stored.get_header("Content-ID") == "<logo.png>"


def test_add_related_on_sub_attachment_fails():
    body = Attachment()
    body.add_related(_image())
    with pytest.raises(TooManyLevels):
        body.get_related(0).add_related(_image("other.png"))


def test_add_related_with_children_fails():
    nested = Attachment()
    nested.add_related(_image())
    with pytest.raises(TooManyLevels):
        Attachment().add_related(nested)


@pytest.mark.parametrize("index", [-1, 1, 5])
def test_get_related_out_of_range(index):
    body = Attachment()
    body.add_related(_image())
    with pytest.raises(OutOfRange):
        body.get_related(index)


def test_header_accessors():
    part = Attachment()
    part.add_header("X-Tag", "1")
    assert part.has_header("x-tag")
    part.remove_header("X-TAG")
    assert not part.has_header("X-Tag")
    assert part.get_header("X-Tag") == ""
    assert len(part.get_all_headers()) == 0


def test_serialize_roundtrip_with_related():
    body = Attachment()
    body.set_quoted_printable_data(b"<html><img src='cid:logo.png'></html>", "text/html; charset=utf-8")
    body.add_related(_image())
    body.add_related(_image("second.png"))

    buffer = io.BytesIO()
    body.serialize(Serializer(buffer))
    restored = Attachment()
    assert restored.deserialize(Deserializer(io.BytesIO(buffer.getvalue())), False)
    assert restored == body
    assert restored.get_related(1).get_header("Content-ID") == "<second.png>"
    assert restored.get_related(1).is_sub_attachment


def test_equality_and_copy():
    part = _image()
    clone = part.copy()
    assert clone == part
    clone.set_data(b"other", "text/plain")
    assert clone != part


def test_header_without_sub_name_is_skipped(capsys):
    buffer = io.BytesIO()
    writer = Serializer(buffer)
    writer.add_value("header", "image/png")
    writer.add_value("data", b"payload")

    restored = Attachment()
    assert restored.deserialize(Deserializer(io.BytesIO(buffer.getvalue())), False)
    assert restored.get_data() == b"payload"
    assert len(restored.get_all_headers()) == 0
    assert "unknown_field_skipped" in capsys.readouterr().err
