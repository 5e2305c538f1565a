"""
Table assignment for a round's pairings.

BEST_FIRST: tables 1..N in rank order (best-ranked pairing on table 1).
RANDOM: a uniformly random permutation of 1..N; pass a seed for a reproducible draw.
Byes sit at no table.
"""

from __future__ import annotations

import random
from typing import List, Optional

from app.models.round_definition import TableAssignmentStrategy
from app.services.pairing_engine import Pairing


def assign_tables(
    pairings: List[Pairing],
    strategy: TableAssignmentStrategy = TableAssignmentStrategy.BEST_FIRST,
    seed: Optional[int] = None,
) -> List[Pairing]:
    """Set ``table_number`` on each pairing (in place) and return the same list.

    *pairings* must already be in rank order.
    """
    playing = [p for p in pairings if not p.is_bye]
    tables = list(range(1, len(playing) + 1))
    if strategy == TableAssignmentStrategy.RANDOM:
        random.Random(seed).shuffle(tables)

    for pairing, table in zip(playing, tables):
        pairing.table_number = table
    for pairing in pairings:
        if pairing.is_bye:
            pairing.table_number = None
    return pairings
