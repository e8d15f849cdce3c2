from __future__ import annotations

from api.errors import ValidationFailure

MIN_CREDENTIAL_LENGTH = 6


def validate_login(username: str, password: str) -> None:
    """Raise ValidationFailure if the login form cannot be submitted."""
    if not username:
        raise ValidationFailure("Username is a required field")
    if not password:
        raise ValidationFailure("Password is a required field")


def validate_registration(username: str, password: str, confirm_password: str) -> None:
    if not username:
        raise ValidationFailure("Username is a required field")
    if len(username) < MIN_CREDENTIAL_LENGTH:
        raise ValidationFailure(
            f"Username must be at least {MIN_CREDENTIAL_LENGTH} characters"
        )
    if not password:
        raise ValidationFailure("Password is a required field")
    if len(password) < MIN_CREDENTIAL_LENGTH:
        raise ValidationFailure(
            f"Password must be at least {MIN_CREDENTIAL_LENGTH} characters"
        )
    if password != confirm_password:
        raise ValidationFailure("Passwords do not match")


def validate_quantity(quantity) -> int:
    # bool is an int subclass, but True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationFailure("Quantity must be a whole number")
    return quantity
