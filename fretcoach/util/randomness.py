from __future__ import annotations

"""Randomness helpers for note selection and seeding."""

import os
import random
from typing import Optional

import numpy as np


def seed_from_env() -> Optional[int]:
    """Return the integer in the SEED env var, if set and valid."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        return int(seed)
    except ValueError:
        return None


def seed_if_needed() -> None:
    """Seed the global RNGs if the SEED env var is set."""
    s = seed_from_env()
    if s is not None:
        random.seed(s)
        np.random.seed(s)


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Build an RNG from an explicit seed, else SEED env var, else system entropy."""
    if seed is None:
        seed = seed_from_env()
    return random.Random(seed)


def choose_random_note(rng: random.Random) -> int:
    """Uniform pitch class 0..11."""
    return rng.randrange(12)

