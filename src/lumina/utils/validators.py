"""Identity helpers used by login and student registration.

Conventions:
- A login identifier containing "@" is treated as an email address.
- Accounts created without an email get one synthesized from the name:
  lowercased, whitespace runs replaced by ".", plus the configured domain.
"""

import re

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_WHITESPACE = re.compile(r"\s+")


def is_email(identifier: str) -> bool:
    """Whether a login identifier should be treated as an email address."""
    return "@" in identifier


def validate_email(email: str) -> bool:
    """Validate email format. Empty string is valid (optional field)."""
    if not email:
        return True
    return bool(EMAIL_PATTERN.match(email))


def name_slug(name: str) -> str:
    """Slug used as the local part of a synthesized email.

    Example:
        >>> name_slug("Mary Ann  Smith")
        'mary.ann.smith'
    """
    return _WHITESPACE.sub(".", name.strip().lower())


def synthesize_email(name: str, domain: str) -> str:
    """Build the placeholder email for an account registered by name."""
    return f"{name_slug(name)}@{domain}"


def identity_from_identifier(identifier: str, domain: str) -> tuple[str, str]:
    """Derive (email, name) for auto-registration from a login identifier.

    Args:
        identifier: Name or email typed at login
        domain: Domain for synthesized emails

    Returns:
        Tuple of (email, display name)
    """
    if is_email(identifier):
        return identifier, identifier.split("@")[0]
    return synthesize_email(identifier, domain), identifier
