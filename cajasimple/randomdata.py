"""Random values for filling the database with sample records."""

from __future__ import annotations

import random

ALPHABET = "abcdefghijklmopqtuvsxyz"


def random_number(low: int, high: int) -> int:
    """Return a random integer between low and high, both included."""
    if high < low:
        raise ValueError("high must not be lower than low")
    return random.randint(low, high)


def random_string(n: int) -> str:
    """Return n random lower-case letters; empty when n is not positive."""
    return "".join(random.choice(ALPHABET) for _ in range(n))


def random_money() -> int:
    """Return a random amount between 800 and 10000."""
    return random_number(800, 10000)


def random_name() -> str:
    """Return a random six-letter name."""
    return random_string(6)


def random_supplier_id() -> int:
    """Return a random supplier id between 1 and 20."""
    return random_number(1, 20)