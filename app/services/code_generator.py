"""Membership code generation.

Codes look like ``STU-7QK2ZD``: a fixed prefix plus a short random
upper-case alphanumeric suffix.  They identify a member on the printed ID
card and are not security tokens.  Callers must only request a code for a
record that does not have one yet (see ``SyncEngine.submit_profile``).
"""

from __future__ import annotations

import random

from app.core.config import settings
from app.core.constants import UNIQUE_CODE_ALPHABET

_rng = random.SystemRandom()


def generate_unique_code(
    prefix: str | None = None,
    length: int | None = None,
) -> str:
    """Return a new membership code.

    *prefix* and *length* default to ``settings.UNIQUE_CODE_PREFIX`` and
    ``settings.UNIQUE_CODE_LENGTH``.
    """
    prefix = settings.UNIQUE_CODE_PREFIX if prefix is None else prefix
    length = settings.UNIQUE_CODE_LENGTH if length is None else length
    if length < 1:
        raise ValueError(f"Code length must be positive, got {length}")
    suffix = "".join(_rng.choice(UNIQUE_CODE_ALPHABET) for _ in range(length))
    return f"{prefix}{suffix}".upper()
