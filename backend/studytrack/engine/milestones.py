"""
Streak milestones shown next to attendance stats. Display only: nothing here awards XP.
"""
from dataclasses import dataclass

from ..models import Milestone


@dataclass
class Tier:
    threshold: int
    emoji: str
    message: str
    badge_message: str | None = None
    badge_xp: int = 0


# Highest threshold first
TIERS: list[Tier] = [
    Tier(30, "🔥", "Incredible dedication!", "Legend Status Achieved!", 100),
    Tier(14, "⚡", "You're on fire!",        "You're unstoppable!",      75),
    Tier(7,  "🌟", "Building great habits!", "You've built a great habit!", 50),
    Tier(3,  "💪", "Keep it up!"),
    Tier(0,  "💪", "Every day counts!"),
]

BADGE_NAME = "Streak Master"


def tier_for(streak: int) -> Tier:
    for tier in TIERS:
        if streak >= tier.threshold:
            return tier
    return TIERS[-1]


def streak_milestone(streak: int) -> Milestone:
    tier = tier_for(streak)
    if tier.badge_message is None:
        return Milestone(emoji=tier.emoji, message=tier.message)
    return Milestone(
        emoji=tier.emoji,
        message=tier.message,
        badge=f"{BADGE_NAME}: {tier.badge_message}",
        badge_xp=tier.badge_xp,
    )
