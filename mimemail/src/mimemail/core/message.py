"""The email aggregate: top-level headers, parts, parameters and metadata.

What:
  :class:`Email` collects everything needed to render and send one message:
  validated address headers, free-text headers, the body (attachment 0) and
  further attachments, plus application parameters and bookkeeping fields
  that travel with the serialized form.

Why:
  Applications compose messages in one place (a web request, a cron job) and
  hand them to a sender elsewhere. Validation therefore happens when a value
  is set, so a message that made it to the queue is known to be well formed.

How:
  Address-bearing headers are classified with
  :func:`mimemail.utils.addresses.classify_field` and parsed with
  :func:`mimemail.utils.addresses.parse_address_list`. Attachments are stored
  as copies. Persistence uses the BRS codec; rendering and sending live in
  :mod:`mimemail.core.render` and :mod:`mimemail.core.sender`.

Interfaces:
  :class:`Priority`, :class:`Email`.

Invariants & Safety:
  - ``From`` always holds exactly one address, ``To`` at least one.
  - Parameter names are case sensitive, unlike header names.
  - Equality covers every field except the creation ``timestamp``.
"""
from __future__ import annotations

import enum
import io
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..errors import InvalidArgument, OutOfRange
from ..utils.addresses import FieldType, classify_field, parse_address_list
from ..utils.brs import Deserializer, Field, Serializer
from ..utils.logging import get_logger
from .attachment import Attachment
from .headers import HeaderMap

if TYPE_CHECKING:  # pragma: no cover
    from ..config.schema import RuntimeConfig
    from ..transport.process import ProcessRunner


_LOGGER = get_logger("mimemail.email")

SERIALIZATION_VERSION = "1.1"


class Priority(enum.IntEnum):
    """Importance of a message, from bulk mailing to urgent."""

    BULK = 1
    LOW = 2
    NORMAL = 3
    HIGH = 4
    URGENT = 5

    @property
    def label(self) -> str:
        return _PRIORITY_LABELS[self]


_PRIORITY_LABELS = {
    Priority.BULK: "Bulk",
    Priority.LOW: "Low",
    Priority.NORMAL: "Normal",
    Priority.HIGH: "High",
    Priority.URGENT: "Urgent",
}


def _top_level_copy(attachment: Attachment) -> Attachment:
    # a related part promoted to the message keeps its data, not its role
    copied = attachment.copy()
    copied.is_sub_attachment = False
    return copied


class Email:
    """A complete message ready to be rendered, persisted or sent."""

    def __init__(self) -> None:
        self.headers = HeaderMap()
        self.attachments: List[Attachment] = []
        self.parameters: Dict[str, str] = {}
        self.branding = True
        self.cumulative = ""
        self.site_key = ""
        self.email_path = ""
        self.email_key = ""
        self.timestamp = int(time.time())

    # -- metadata --------------------------------------------------------

    def set_branding(self, branding: bool = True) -> None:
        """Toggle the ``X-Generated-By``/``X-Mailer`` lines in rendered output."""

        self.branding = bool(branding)

    def get_branding(self) -> bool:
        return self.branding

    def set_cumulative(self, obj: str) -> None:
        """Mark the email as cumulative under ``obj`` (``""`` clears it)."""

        self.cumulative = obj

    def get_cumulative(self) -> str:
        return self.cumulative

    def set_site_key(self, site_key: str) -> None:
        self.site_key = site_key

    def get_site_key(self) -> str:
        return self.site_key

    def set_email_path(self, email_path: str) -> None:
        self.email_path = email_path

    def get_email_path(self) -> str:
        return self.email_path

    def set_email_key(self, email_key: str) -> None:
        self.email_key = email_key

    def get_email_key(self) -> str:
        return self.email_key

    def get_time(self) -> int:
        """Return the creation time in seconds since the epoch (UTC)."""

        return self.timestamp

    # -- well known headers ----------------------------------------------

    def set_from(self, value: str) -> None:
        """Set ``From``; ``value`` must hold exactly one address.

        Raises:
          InvalidArgument: For malformed input, zero or several addresses.
        """

        if len(parse_address_list(value)) != 1:
            raise InvalidArgument(f"From must be exactly one email address, got {value!r}")
        self.headers.set("From", value)

    def set_to(self, value: str) -> None:
        """Set ``To``; ``value`` must hold one or more addresses."""

        if not parse_address_list(value):
            raise InvalidArgument("To requires at least one email address")
        self.headers.set("To", value)

    def set_subject(self, value: str) -> None:
        self.headers.set("Subject", value)

    def set_priority(self, priority: Any = Priority.NORMAL) -> None:
        """Set the four priority headers understood by common mail clients.

        What:
          ``X-Priority`` gets ``"<n> (<Label>)"``; ``X-MSMail-Priority``,
          ``Importance`` and ``Precedence`` get the label.

        Raises:
          InvalidArgument: When ``priority`` is not one of :class:`Priority`.
        """

        if isinstance(priority, bool):
            raise InvalidArgument(f"unknown priority {priority!r}")
        try:
            level = Priority(priority)
        except ValueError as exc:
            raise InvalidArgument(f"unknown priority {priority!r}") from exc
        label = level.label
        self.headers.set("X-Priority", f"{int(level)} ({label})")
        self.headers.set("X-MSMail-Priority", label)
        self.headers.set("Importance", label)
        self.headers.set("Precedence", label)

    def add_header(self, name: str, value: str) -> None:
        """Add or replace a top-level header after validating it.

        What:
          Accepts any valid field name; address-bearing fields must carry
          addresses in the right quantity.

        How:
          :func:`classify_field` decides the category: ``MAILBOX`` needs
          exactly one address, ``ADDRESS_LIST`` one or more and
          ``ADDRESS_LIST_OPT`` (``Bcc``) accepts an empty value.

        Raises:
          InvalidArgument: For an empty or malformed name, or a value that
            does not match the field category.
        """

        field_type = classify_field(name)
        if field_type is FieldType.INVALID:
            raise InvalidArgument(f"invalid header name {name!r}")
        if field_type is not FieldType.FREE_TEXT:
            addresses = parse_address_list(value)
            if field_type is FieldType.MAILBOX and len(addresses) != 1:
                raise InvalidArgument(f"{name} must be exactly one email address")
            if field_type is FieldType.ADDRESS_LIST and not addresses:
                raise InvalidArgument(f"{name} requires at least one email address")
        self.headers.set(name, value)

    def remove_header(self, name: str) -> None:
        self.headers.remove(name)

    def has_header(self, name: str) -> bool:
        return self.headers.has(name)

    def get_header(self, name: str) -> str:
        return self.headers.get(name)

    def get_all_headers(self) -> HeaderMap:
        return self.headers

    # -- attachments -----------------------------------------------------

    def set_body_attachment(self, attachment: Attachment) -> None:
        """Insert a copy of ``attachment`` as the body (index 0)."""

        self.attachments.insert(0, _top_level_copy(attachment))

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments.append(_top_level_copy(attachment))

    def get_attachment_count(self) -> int:
        return len(self.attachments)

    def get_attachment(self, index: int) -> Attachment:
        if not 0 <= index < len(self.attachments):
            raise OutOfRange(f"attachment index {index} out of range")
        return self.attachments[index]

    # -- parameters ------------------------------------------------------

    def add_parameter(self, name: str, value: str) -> None:
        if not name:
            raise InvalidArgument("parameter name cannot be empty")
        self.parameters[name] = value

    def get_parameter(self, name: str) -> str:
        if not name:
            raise InvalidArgument("parameter name cannot be empty")
        return self.parameters.get(name, "")

    def get_all_parameters(self) -> Dict[str, str]:
        return self.parameters

    # -- persistence -----------------------------------------------------

    def serialize(self, writer: Serializer) -> None:
        writer.add_value("version", SERIALIZATION_VERSION)
        writer.add_value("branding", self.branding)
        writer.add_value_if_not_empty("cumulative", self.cumulative)
        writer.add_value("site_key", self.site_key)
        writer.add_value("email_path", self.email_path)
        writer.add_value("email_key", self.email_key)
        for name, value in self.headers.items():
            writer.add_value("header", value, sub_name=name)
        for attachment in self.attachments:
            with writer.recursive("attachment"):
                attachment.serialize(writer)
        for name, value in self.parameters.items():
            writer.add_value("parameter", value, sub_name=name)

    def deserialize(self, reader: Deserializer) -> bool:
        """Populate ``self`` from ``reader``.

        What:
          Reads the fields written by :meth:`serialize` in any order.

        Why:
          Emails are queued by one version of the application and may be sent
          by another; unknown fields must not break older readers.

        How:
          Dispatches on the field name. Unknown names are logged and skipped,
          ``attachment`` blocks are handed to :meth:`Attachment.deserialize`.

        Returns:
          ``False`` when the stream ended early, in which case ``self`` holds
          whatever was read before the cut.
        """

        def process_hunk(deserializer: Deserializer, field: Field) -> bool:
            name = field.name
            if name == "version":
                version = field.read_string()
                if version != SERIALIZATION_VERSION:
                    _LOGGER.warning("serialization_version_mismatch", version=version)
            elif name == "branding":
                self.branding = field.read_bool()
            elif name == "cumulative":
                self.cumulative = field.read_string()
            elif name == "site_key":
                self.site_key = field.read_string()
            elif name == "email_path":
                self.email_path = field.read_string()
            elif name == "email_key":
                self.email_key = field.read_string()
            elif name == "header" and field.is_named_subfield:
                self.headers.set(field.sub_name, field.read_string())
            elif name == "parameter" and field.is_named_subfield:
                self.parameters[field.sub_name] = field.read_string()
            elif name == "attachment" and field.is_block:
                attachment = Attachment()
                complete = attachment.deserialize(deserializer, False)
                self.attachments.append(attachment)
                return complete
            else:
                _LOGGER.warning("unknown_field_skipped", field=name, owner="email")
            return True

        complete = reader.deserialize(process_hunk)
        if not complete:
            _LOGGER.warning(
                "email_truncated",
                header_count=len(self.headers),
                attachment_count=len(self.attachments),
            )
        return complete

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.serialize(Serializer(buffer))
        return buffer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Email":
        """Rebuild an email from :meth:`to_bytes` output (best effort)."""

        return cls.load(data)[0]

    @classmethod
    def load(cls, data: bytes) -> Tuple["Email", bool]:
        """Like :meth:`from_bytes`, also reporting whether the stream was complete."""

        email = cls()
        complete = email.deserialize(Deserializer(io.BytesIO(data)))
        return email, complete

    # -- sending ---------------------------------------------------------

    def send(
        self,
        *,
        runner: Optional["ProcessRunner"] = None,
        config: Optional["RuntimeConfig"] = None,
    ) -> bool:
        """Render and hand the message to the mail transport.

        See :func:`mimemail.core.sender.send_email`.
        """

        from .sender import send_email

        return send_email(self, runner=runner, config=config)

    # -- value semantics -------------------------------------------------

    def _state(self) -> tuple:
        return (
            self.headers,
            self.attachments,
            self.parameters,
            self.branding,
            self.cumulative,
            self.site_key,
            self.email_path,
            self.email_key,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Email):
            return NotImplemented
        return self._state() == other._state()

    def __repr__(self) -> str:
        return (
            f"Email(from={self.headers.get('From')!r}, to={self.headers.get('To')!r}, "
            f"attachments={len(self.attachments)})"
        )
