"""Contact and shipping snapshot captured on an order.

The snapshot is copied onto the order at commit time so later edits to a
customer's address book never change historical orders.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass

from storefront.domain.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[\d\s\-+()]{8,20}$")

# field name -> (label, minimum length)
_REQUIRED_FIELDS = {
    "full_name": ("Full Name", 2),
    "street": ("Street Address", 5),
    "city": ("City", 2),
    "state": ("State/Province", 2),
    "postal_code": ("Postal Code", 3),
    "country": ("Country", 1),
}


def is_valid_email(email: str | None) -> bool:
    return bool(email and _EMAIL_RE.match(email.strip()))


@dataclass(frozen=True)
class ContactInfo:
    full_name: str
    email: str
    street: str
    city: str
    state: str
    postal_code: str
    country: str
    phone: str | None = None

    @staticmethod
    def from_payload(payload: dict) -> ContactInfo:
        """Build a snapshot from a loosely-typed payload, validating every field.

        All problems are reported together in a single ValidationError.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Contact details must be a mapping")

        cleaned: dict[str, str] = {}
        missing: list[str] = []
        errors: list[str] = []

        for name, (label, min_len) in _REQUIRED_FIELDS.items():
            value = str(payload.get(name) or "").strip()
            if not value:
                missing.append(label)
            elif len(value) < min_len:
                errors.append(f"{label} must be at least {min_len} characters")
            cleaned[name] = value

        email = str(payload.get("email") or "").strip()
        if not email:
            missing.append("Email")
        elif not is_valid_email(email):
            errors.append("Email is not a valid address")

        phone = str(payload.get("phone") or "").strip() or None
        if phone is not None and not _PHONE_RE.match(phone):
            errors.append("Phone Number must be 8-20 digits (spaces, dashes, parentheses allowed)")

        if missing or errors:
            parts = []
            if missing:
                parts.append("missing " + ", ".join(missing))
            parts.extend(errors)
            raise ValidationError("Invalid contact details: " + "; ".join(parts))

        return ContactInfo(email=email.lower(), phone=phone, **cleaned)

    def to_dict(self) -> dict:
        return asdict(self)
