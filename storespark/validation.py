"""
Field validation rules for user, store and rating forms.

Each ``validate_*`` function takes a single value and returns ``None`` when it
is acceptable, or a message to show next to the field.
"""
import re
from typing import Any, Dict, Mapping, Optional

NAME_MIN = 20
NAME_MAX = 60
PASSWORD_MIN = 8
PASSWORD_MAX = 16
ADDRESS_MAX = 400
RATING_MIN = 1
RATING_MAX = 5
STORE_NAME_MIN = 3

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UPPERCASE_RE = re.compile(r"[A-Z]")
SYMBOL_RE = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")

PASSWORD_MESSAGE = (
    "Password must be 8-16 characters, include at least one uppercase letter "
    "and one special character."
)
RATING_MESSAGE = f"Rating must be between {RATING_MIN} and {RATING_MAX}."


def validate_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return "Name is required."
    if len(name) < NAME_MIN:
        return f"Name must be at least {NAME_MIN} characters."
    if len(name) > NAME_MAX:
        return f"Name must be no more than {NAME_MAX} characters."
    return None


def validate_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return "Email is required."
    if not EMAIL_RE.match(email):
        return "Invalid email address."
    return None


def validate_password(password: Optional[str]) -> Optional[str]:
    if not password:
        return "Password is required."
    if not (PASSWORD_MIN <= len(password) <= PASSWORD_MAX):
        return f"Password must be between {PASSWORD_MIN} and {PASSWORD_MAX} characters."
    if not UPPERCASE_RE.search(password) or not SYMBOL_RE.search(password):
        return PASSWORD_MESSAGE
    return None


def validate_address(address: Optional[str]) -> Optional[str]:
    if not address:
        return "Address is required."
    if len(address) > ADDRESS_MAX:
        return f"Address must be no more than {ADDRESS_MAX} characters."
    return None


def validate_rating(rating: Any) -> Optional[str]:
    if isinstance(rating, bool) or not isinstance(rating, int):
        return RATING_MESSAGE
    if rating < RATING_MIN or rating > RATING_MAX:
        return RATING_MESSAGE
    return None


# Store form

def validate_store_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return "Store name is required."
    if len(name) < STORE_NAME_MIN:
        return "Store name too short."
    return None


def validate_store_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return "Store email is required."
    if not EMAIL_RE.match(email):
        return "Invalid email."
    return None


def validate_store_address(address: Optional[str]) -> Optional[str]:
    if not address:
        return "Store address is required."
    if len(address) > ADDRESS_MAX:
        return "Address too long."
    return None


USER_FORM_RULES = {
    "name": validate_name,
    "email": validate_email,
    "password": validate_password,
    "address": validate_address,
}

STORE_FORM_RULES = {
    "name": validate_store_name,
    "email": validate_store_email,
    "address": validate_store_address,
}


def _collect(rules, data: Mapping[str, Any]) -> Dict[str, str]:
    errors = {}
    for field, rule in rules.items():
        message = rule(data.get(field))
        if message:
            errors[field] = message
    return errors


def validate_user_form(data: Mapping[str, Any]) -> Dict[str, str]:
    """Runs every user rule and returns ``{field: message}`` for the failures."""
    return _collect(USER_FORM_RULES, data)


def validate_store_form(data: Mapping[str, Any]) -> Dict[str, str]:
    return _collect(STORE_FORM_RULES, data)
