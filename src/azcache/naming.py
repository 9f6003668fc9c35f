"""Unique resource names for workflow runs."""

import secrets
import string

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def create_random_name(prefix: str, length: int = 8) -> str:
    """Return ``prefix`` followed by a random lowercase alphanumeric suffix.

    Cache names must be globally unique DNS labels, so the suffix keeps names
    collision-free across runs.

    Args:
        prefix: Name prefix (e.g. "RedisRG", "rc1")
        length: Suffix length (default: 8)

    Raises:
        ValueError: If prefix is empty or length is not positive
    """
    if not prefix:
        raise ValueError("prefix cannot be empty")
    if length <= 0:
        raise ValueError("length must be positive")

    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))
    return f"{prefix}{suffix}"


__all__ = ["create_random_name"]
