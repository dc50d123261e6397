"""
Random access-key generator.

Keys are opaque strings over a 62-symbol alphanumeric alphabet. At the default
length of 16 the keyspace is 62^16 (about 4.8 * 10^28), so a collision with a
stored key is practically impossible; the bounded retry loop only guards
against the pathological case.
"""

import secrets
import string
from typing import Awaitable, Callable

from keygate.common.exceptions import GenerationExhaustedError
from keygate.common.logging import get_logger

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_LENGTH = 16
DEFAULT_MAX_ATTEMPTS = 5

logger = get_logger("keygen")


def random_key(length: int = DEFAULT_LENGTH) -> str:
    """Draw `length` characters uniformly from ALPHABET."""
    if length < 1:
        raise ValueError(f"key length must be positive, got {length}")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


async def generate_unique_key(
    exists: Callable[[str], Awaitable[bool]],
    length: int = DEFAULT_LENGTH,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Generate a key that `exists` reports as unused.

    Args:
        exists: async predicate answering whether a key is already stored
        length: number of characters in the key
        max_attempts: total number of candidates tried before giving up

    Returns:
        A key not currently present in the store

    Raises:
        GenerationExhaustedError: every candidate collided
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        candidate = random_key(length)
        if not await exists(candidate):
            return candidate
        logger.warning("Generated key collided (attempt %d of %d)", attempt, max_attempts)

    logger.error("Key generation exhausted after %d attempts", max_attempts)
    raise GenerationExhaustedError()
