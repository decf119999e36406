"""Pydantic models describing the mimemail runtime configuration."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ValidationError(ValueError):
    """Raised when configuration data does not satisfy the schema."""


class RenderConfig(BaseModel):
    """Knobs of the MIME renderer."""

    model_config = ConfigDict(extra="forbid")

    boundary_prefix: str = "=MimeMail="
    default_language: str = "en-us"
    generator: str = "mimemail v1.1 (https://pypi.org/project/mimemail/)"
    preamble: str = (
        "The following are various parts of a multipart email.\n"
        "It is likely to include a text version (first part) that you should\n"
        "be able to read as is.\n"
        "It may be followed by HTML and then various attachments.\n"
        "Please consider installing a MIME capable client to read this email.\n"
    )

    @field_validator("boundary_prefix")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        # bcharsnospace minus the characters that would need quoting
        allowed = set("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz'()+_,-./:=?")
        if not value or len(value) > 49 or not set(value) <= allowed:
            raise ValidationError("boundary_prefix must be 1-49 RFC 2046 boundary characters")
        return value


class Html2TextConfig(BaseModel):
    """External HTML to plain text filter."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    command: str = "html2text"
    args: List[str] = Field(
        default_factory=lambda: ["-nobs", "-utf8", "-style", "pretty", "-width", "70"]
    )
    timeout_s: Optional[float] = Field(default=None, gt=0)


class TransportConfig(BaseModel):
    """External mail transport agent."""

    model_config = ConfigDict(extra="forbid")

    command: str = "sendmail"
    timeout_s: Optional[float] = Field(default=None, gt=0)


class RuntimeConfig(BaseModel):
    """Root configuration loaded from ``mimemail.yaml``."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    render: RenderConfig = Field(default_factory=RenderConfig)
    html2text: Html2TextConfig = Field(default_factory=Html2TextConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)

    @field_validator("version")
    @classmethod
    def _validate_version(cls, value: int) -> int:
        if value != 1:
            raise ValidationError("mimemail configuration version must be 1")
        return value
