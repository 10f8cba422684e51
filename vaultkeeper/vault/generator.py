"""Random secret generation for new or replacement credentials."""
import string
import secrets

ALPHABET = (
    string.ascii_lowercase
    + string.ascii_uppercase
    + string.digits
    + "!@#$%^&*()_+-=[]{}|;:,.<>?"
)

DEFAULT_LENGTH = 16


def generate(length: int = DEFAULT_LENGTH) -> str:
    """Return a random secret of ``length`` characters drawn from ALPHABET.

    Uses the ``secrets`` CSPRNG; a non-positive length yields an empty string.
    """
    if length <= 0:
        return ""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
