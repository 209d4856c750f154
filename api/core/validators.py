"""
Reusable field rules for request schemas.

Use them through the `Annotated` aliases at the bottom of this module, e.g.

    class CreateCollection(BaseModel):
        name: ResourceName = Field(..., min_length=3)

Rules that need runtime data (the owner blacklist) read it from the
pydantic validation context, which `core.binding.Binder` fills in.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, ValidationInfo

OWNER_BLACKLIST_KEY = "owner_blacklist"

_ALPHANUM_SPACE = re.compile(r"^[\w\-\s]+$")
_ALPHANUM = re.compile(r"^[A-Za-z0-9]+$")
_SLUG = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def load_owner_blacklist(path: Path | str | None) -> frozenset[str]:
    if not path:
        return frozenset()
    with open(path, "r", encoding="utf-8") as fh:
        names = json.load(fh)
    if not isinstance(names, list):
        raise ValueError(f"Owner blacklist at {path} must be a JSON array of names")
    return frozenset(str(name).strip().lower() for name in names if str(name).strip())


def no_forward_slash(value: str) -> str:
    if "/" in value:
        raise ValueError("must not contain '/'")
    return value


def no_percent(value: str) -> str:
    if "%" in value:
        raise ValueError("must not contain '%'")
    return value


def alphanum_space(value: str) -> str:
    if not _ALPHANUM_SPACE.match(value):
        raise ValueError("may only contain letters, digits, spaces, '_' and '-'")
    return value


def alphanum(value: str) -> str:
    if not _ALPHANUM.match(value):
        raise ValueError("may only contain letters and digits")
    return value


def print_ascii(value: str) -> str:
    if any(not (0x20 <= ord(ch) <= 0x7E) for ch in value):
        raise ValueError("must only contain printable ASCII characters")
    return value


def base64_encoded(value: str) -> str:
    try:
        base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError("must be base64 encoded") from exc
    return value


def not_in_blacklist(value: str, info: ValidationInfo) -> str:
    blacklist = (info.context or {}).get(OWNER_BLACKLIST_KEY) or frozenset()
    if value.strip().lower() in blacklist:
        raise ValueError("name is reserved")
    return value


def email(value: str) -> str:
    if not _EMAIL.match(value):
        raise ValueError("must be a valid email address")
    return value


def is_slug(value: str) -> bool:
    return bool(_SLUG.match(value or ""))


ResourceName = Annotated[str, AfterValidator(no_forward_slash), AfterValidator(no_percent)]
OwnerName = Annotated[str, AfterValidator(alphanum_space), AfterValidator(not_in_blacklist)]
ParticipantName = Annotated[str, AfterValidator(alphanum_space)]
Username = Annotated[str, AfterValidator(alphanum)]
AsciiText = Annotated[str, AfterValidator(print_ascii)]
Base64Text = Annotated[str, AfterValidator(base64_encoded)]
EmailAddress = Annotated[str, AfterValidator(email)]
