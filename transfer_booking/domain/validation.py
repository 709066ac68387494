"""Contact-detail checks used by the ContactDetails step gate."""

from __future__ import annotations

import re
from typing import Optional

from .entities import ContactDetails

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
FLIGHT_RE = re.compile(r"^[A-Z]{2}\d{1,4}$", re.IGNORECASE)
PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    digits = re.sub(r"\D", "", phone)
    return PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS


def is_valid_flight_number(flight_number: str) -> bool:
    return bool(FLIGHT_RE.match(re.sub(r"\s", "", flight_number)))


def contact_problems(contact: Optional[ContactDetails]) -> list[str]:
    if contact is None:
        return ["contact details are required"]
    problems: list[str] = []
    if not contact.first_name.strip():
        problems.append("first name is required")
    if not contact.last_name.strip():
        problems.append("last name is required")
    if not is_valid_email(contact.email):
        problems.append("email is not valid")
    if not is_valid_phone(contact.phone):
        problems.append("phone number is not valid")
    if contact.flight_number and not is_valid_flight_number(contact.flight_number):
        problems.append("flight number is not valid")
    return problems
