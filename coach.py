# coach.py — mindset copy: post-session coach, the ten rules, study feed
from __future__ import annotations

import random
from typing import Any, Dict, List, Optional

from models import DailySession

__all__ = [
    "coach_message",
    "lock_message",
    "random_commandment",
    "daily_feed",
    "COMMANDMENTS",
    "KNOWLEDGE_BASE",
]

COMMANDMENTS: List[str] = [
    "Never chase losses. Accepting the loss is how you stay in control.",
    "Profit in your pocket beats profit on the screen.",
    "Your bankroll is your business. Don't break it.",
    "Hit the goal in 5 minutes? STOP. Don't push your luck.",
    "Mental fatigue is expensive. 30 minutes is the limit.",
    "Never play sad, drunk or euphoric.",
    "The game is sovereign. Don't guess, follow the strategy.",
    "Compound interest is the eighth wonder. Respect the process.",
    "Early cashouts fill the pocket. Greed fills the ego.",
    "Discipline today is what pays tomorrow.",
]

KNOWLEDGE_BASE: List[Dict[str, Any]] = [
    {"id": 1, "category": "Management", "title": "The 3 Stops Rule",
     "content": "Three stops in a row at different times of day means you are done for today. Protect the capital."},
    {"id": 2, "category": "Mindset", "title": "The Shaky-Hands Effect",
     "content": "Cashing out too early out of fear (1.10x) drains the bankroll: you need many wins to cover a single loss."},
    {"id": 3, "category": "Psychology", "title": "Dopamine Detox",
     "content": "The game hooks you with random dopamine. Make your process boring and predictable. If you feel thrilled, you are wrong."},
    {"id": 4, "category": "Technique", "title": "Smart Cover Bet",
     "content": "Let the first bet pay for the second: bet A cashes at 1.50x and covers everything, bet B chases the high multiplier."},
    {"id": 5, "category": "Curiosity", "title": "What is Provably Fair?",
     "content": "The round result is fixed before the round starts. There is no click timing, only choosing which rounds to play."},
    {"id": 6, "category": "Beginner", "title": "Bankroll Management 101",
     "content": "Never put more than 5% of the bankroll on one round. With 100 in the bank, the maximum stake is 5. Survival comes first."},
    {"id": 7, "category": "Psychology", "title": "The FOMO Trap",
     "content": "Saw a 100x and jumped into the next round expecting another? Classic mistake. Fear of missing out is the top loss driver for beginners."},
    {"id": 8, "category": "Technique", "title": "The 1.00x Insta-Loss",
     "content": "Rounds that crash on take-off happen. After one, sit out a few rounds instead of revenge betting."},
    {"id": 9, "category": "Math", "title": "How Often 2.00x Pays",
     "content": "A 2.00x cashout hits in a bit under half the rounds. With proper sizing it is the sweet spot between risk and reward."},
    {"id": 10, "category": "Management", "title": "Stop-Win Matters Too",
     "content": "A goal you never stop at is not a goal. Lock the day once the target is reached."},
    {"id": 11, "category": "Mindset", "title": "Sessions, Not Marathons",
     "content": "Short, planned sessions keep decisions sharp. Long sessions turn strategy into impulse."},
]

_NEUTRAL = {
    "title": "STEEL MINDSET",
    "message": "Consistency is boring. So is wealth. If you want thrills, go skydiving. We are here to make money.",
    "tone": "neutral",
}


def coach_message(last_session: Optional[DailySession]) -> Dict[str, str]:
    """Pick the debrief tone from the sign of the last session's profit."""
    if last_session is None:
        return dict(_NEUTRAL)

    if last_session.profit > 0:
        return {
            "title": "EASY NOW.",
            "message": (
                "You won. So what? The game is waiting for you to feel invincible so it can take it all back "
                "next session. Euphoria is the gambler's poison. Bank the profit, lock it and walk away."
            ),
            "tone": "win",
        }
    if last_session.profit < 0:
        return {
            "title": "STOP THE BLEEDING.",
            "message": (
                "It hurt? Good. Use that. The amateur tries to win it back right now and busts the bankroll. "
                "The professional books the loss as an operating cost, closes the screen and comes back tomorrow."
            ),
            "tone": "loss",
        }
    return {
        "title": "BREAK-EVEN IS A WIN",
        "message": "You survived. Protecting capital is rule number one. Better flat than red. Patience is the key.",
        "tone": "neutral",
    }


def lock_message(status: Optional[str]) -> Dict[str, str]:
    if status == "WIN":
        return {
            "title": "GOAL HIT. DAY LOCKED.",
            "message": "Today's target is in the bag. Nothing left to prove. Come back tomorrow.",
        }
    if status == "LOSS":
        return {
            "title": "STOP-LOSS HIT. DAY LOCKED.",
            "message": "The limit did its job. Close the screen; the bankroll lives to fight tomorrow.",
        }
    return {"title": "", "message": ""}


def random_commandment(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(COMMANDMENTS)


def daily_feed(k: int = 4, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """Uniform sample of study cards, no repeats."""
    k = max(0, min(int(k), len(KNOWLEDGE_BASE)))
    return (rng or random).sample(KNOWLEDGE_BASE, k)
