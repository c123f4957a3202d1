"""
Referral code generation.
One permanent code per user. Format: "DSDC-" + 6 characters from an alphabet without
look-alike characters (no I, O, 0, 1). Uniqueness is enforced by the database.
"""

import re
import secrets

CODE_PREFIX = "DSDC"
CODE_LENGTH = 6
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

CODE_PATTERN = re.compile(rf"^{CODE_PREFIX}-[{CODE_ALPHABET}]{{{CODE_LENGTH}}}$")


def generate_referral_code() -> str:
    """
    Generate a random referral code candidate.

    Examples:
        DSDC-7KQ2MX
        DSDC-HN4PZA

    Production-safe: uses secrets for the random part.
    """
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
    return f"{CODE_PREFIX}-{suffix}"


def normalize_referral_code(value: str) -> str:
    """Uppercase and trim a code typed or pasted by a person."""
    return (value or "").strip().upper()


def is_well_formed_referral_code(value: str) -> bool:
    return bool(CODE_PATTERN.match(normalize_referral_code(value)))
