import re

from bookcatalog.errors import ValidationError

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")
USERNAME_MAX_LENGTH = 32
PASSWORD_MAX_BYTES = 72  # bcrypt rejects longer input


def validate_username(username: str) -> None:
    """Validate username meets requirements.

    Requirements:
    - Between 1 and 32 characters
    - Only letters, digits, underscore, dot and dash

    Raises:
        ValidationError: If username doesn't meet requirements
    """
    if not username:
        raise ValidationError("Username is required")

    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters long")

    if not USERNAME_RE.fullmatch(username):
        raise ValidationError("Username may only contain letters, digits, '_', '.' and '-'")


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 2 characters
    - At most 72 bytes once UTF-8 encoded

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 2:
        raise ValidationError("Password must be at least 2 characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")

    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long")
