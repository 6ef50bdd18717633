"""
Content-addressed vesting schedule identifiers.
"""

from __future__ import annotations

import hashlib

from ..core.safe_math import require_uint256

_WORD_BYTES = 32


def compute_schedule_id(beneficiary: str, start_time: int, duration: int, amount: int) -> str:
    """
    Derive the identifier of a vesting schedule from its parameters.

    The beneficiary is hashed by its lowercase UTF-8 form and each integer is
    encoded as a 32-byte big-endian word, so the encoding is fixed width and
    unambiguous. Identical parameter tuples always map to the same id.

    Returns:
        "0x" followed by the 64 hex digits of the SHA3-256 digest
    """
    hasher = hashlib.sha3_256()
    hasher.update(hashlib.sha3_256(beneficiary.lower().encode("utf-8")).digest())
    for name, value in (("start_time", start_time), ("duration", duration), ("amount", amount)):
        hasher.update(require_uint256(value, name).to_bytes(_WORD_BYTES, "big"))
    return "0x" + hasher.hexdigest()
