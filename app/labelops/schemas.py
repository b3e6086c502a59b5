"""Reusable pydantic building blocks for request payloads."""
from __future__ import annotations

import re
from datetime import date
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

RequiredStr = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
OptionalStr = Annotated[str, StringConstraints(strict=True, strip_whitespace=True)]
NonNegFloat = Annotated[float, Field(strict=True, ge=0, allow_inf_nan=False)]
NonNegInt = Annotated[int, Field(strict=True, ge=0)]
PositiveInt = Annotated[int, Field(strict=True, ge=1)]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://[^\s/]+\S*$")


def _email_or_blank(v: str) -> str:
    if v and not _EMAIL_RE.match(v):
        raise ValueError("Invalid email")
    return v


def _url_or_blank(v: str) -> str:
    if v and not _URL_RE.match(v):
        raise ValueError("Invalid url")
    return v


def _iso_date(v: str) -> str:
    try:
        date.fromisoformat(v)
    except ValueError:
        raise ValueError("Date must be YYYY-MM-DD") from None
    return v


def _iso_date_or_blank(v: str) -> str:
    return _iso_date(v) if v else v


EmailOrBlank = Annotated[OptionalStr, AfterValidator(_email_or_blank)]
UrlOrBlank = Annotated[OptionalStr, AfterValidator(_url_or_blank)]
IsoDate = Annotated[str, StringConstraints(strict=True, strip_whitespace=True), AfterValidator(_iso_date)]
IsoDateOrBlank = Annotated[OptionalStr, AfterValidator(_iso_date_or_blank)]


class Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, allow_inf_nan=False)

    def provided(self, *, exclude: set[str] | None = None) -> dict:
        """Fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude=exclude or set())

