# ranks.py — career rank lookup (gamification only, NO state mutation)
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from models import CAREER_RANKS, CareerRank

__all__ = ["RankProgress", "current_rank", "TOP_RANK_MESSAGE"]

TOP_RANK_MESSAGE = "Top rank reached. You beat the game."


@dataclass
class RankProgress:
    rank: CareerRank
    next_rank: Optional[CareerRank]
    progress: float  # percent, clamped to [0, 100]

    @property
    def is_top(self) -> bool:
        return self.next_rank is None


def current_rank(lifetime_profit: float, table: List[CareerRank] = CAREER_RANKS) -> RankProgress:
    """
    Highest tier whose threshold is <= lifetime profit. Below the first
    threshold the first tier is still shown.
    """
    idx = 0
    for i, r in enumerate(table):
        if lifetime_profit >= r.min_profit:
            idx = i
        else:
            break

    rank = table[idx]
    nxt = table[idx + 1] if idx + 1 < len(table) else None

    progress = 100.0
    if nxt is not None:
        span = nxt.min_profit - rank.min_profit
        progress = ((lifetime_profit - rank.min_profit) / span) * 100.0 if span > 0 else 100.0
        progress = min(100.0, max(0.0, progress))

    return RankProgress(rank=rank, next_rank=nxt, progress=progress)
