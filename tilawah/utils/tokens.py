"""Public access token generation for the read-only group view."""

import secrets
import string

PUBLIC_TOKEN_LENGTH = 32
_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase


def generate_public_token(length: int = PUBLIC_TOKEN_LENGTH) -> str:
    """Return an unguessable alphanumeric token, e.g. ``kJ8mP2nQ5rT9wX3yZ6aB4cD7eF1gH0iJ``."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))
