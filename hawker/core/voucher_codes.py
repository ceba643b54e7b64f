from __future__ import annotations

import secrets

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_voucher_code(length: int = 10) -> str:
    """Random uppercase voucher code without look-alike characters (0/O, 1/I)."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def normalize_voucher_code(raw_code: str) -> str:
    return "".join(raw_code.split()).replace("-", "").upper()
