# kickstart/services/motivation.py
# Catalogue de messages de motivation et de faits « curiosité », choix déterministe par graine.

from __future__ import annotations

import random
from typing import Optional, Sequence

from kickstart.shared.constants import CURIOSITY_FACTS, MOTIVATIONAL_MESSAGES


def _pick(catalogue: Sequence[str], seed: int) -> str:
    return catalogue[seed % len(catalogue)]


def pick_message(seed: int) -> str:
    """Message de motivation associé à `seed` (même graine, même message)."""
    return _pick(MOTIVATIONAL_MESSAGES, seed)


def pick_curiosity_fact(seed: int) -> str:
    """Fait « curiosité » associé à `seed`."""
    return _pick(CURIOSITY_FACTS, seed)


def new_seed(rng: Optional[random.Random] = None) -> int:
    """Tirer une graine ; seul point aléatoire, appelé par le service de sessions."""
    return (rng or random).randrange(1 << 31)
