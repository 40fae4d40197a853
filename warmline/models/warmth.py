"""
Warmth Scoring

Decaying 0-100 relationship freshness score, recomputed relative to "now".
"""

import logging
import math
from datetime import datetime
from typing import Optional, Protocol

from warmline.models.entities import Contact, WarmthStatus

logger = logging.getLogger(__name__)


class WarmthInputs(Protocol):
    last_interaction: Optional[datetime]
    priority_score: int
    mutual_connections_count: int


class WarmthCalculator:
    """Calculates contact warmth.

    Formula:
        with history:    base - decay_per_day * days_since (+ recent bonus)
        without history: fixed no-history score
        then + priority bonus + mutual bonus, rounded and clamped to [0, 100]
    """

    def __init__(
        self,
        base_score: float = 100.0,
        decay_per_day: float = 0.5,
        recent_days: int = 7,
        recent_bonus: float = 15.0,
        no_history_score: int = 50,
        priority_threshold: int = 80,
        priority_bonus: float = 10.0,
        mutual_connection_bonus: float = 5.0,
        warm_threshold: int = 85,
        cooling_threshold: int = 50,
    ):
        self.base_score = base_score
        self.decay_per_day = decay_per_day
        self.recent_days = recent_days
        self.recent_bonus = recent_bonus
        self.no_history_score = no_history_score
        self.priority_threshold = priority_threshold
        self.priority_bonus = priority_bonus
        self.mutual_connection_bonus = mutual_connection_bonus
        self.warm_threshold = warm_threshold
        self.cooling_threshold = cooling_threshold

    @staticmethod
    def days_since(moment: datetime, now: datetime) -> int:
        """Whole days elapsed, floored.

        When exactly one side carries a timezone, the aware value is
        converted to naive local time before subtracting.
        """
        if (moment.tzinfo is None) != (now.tzinfo is None):
            if moment.tzinfo is not None:
                moment = moment.astimezone().replace(tzinfo=None)
            else:
                now = now.astimezone().replace(tzinfo=None)
        return math.floor((now - moment).total_seconds() / 86400)

    def calculate(self, contact: WarmthInputs, now: Optional[datetime] = None) -> int:
        """Warmth score for a contact.

        Args:
            contact: Anything carrying last_interaction, priority_score and
                optionally mutual_connections_count
            now: Reference time (default: now)

        Returns:
            Integer score in [0, 100]
        """
        if contact.last_interaction is None:
            return self.no_history_score

        now = now or datetime.now()
        days = self.days_since(contact.last_interaction, now)

        score = self.base_score - self.decay_per_day * days
        if days <= self.recent_days:
            score += self.recent_bonus

        if (contact.priority_score or 0) >= self.priority_threshold:
            score += self.priority_bonus

        mutuals = getattr(contact, "mutual_connections_count", 0) or 0
        score += self.mutual_connection_bonus * mutuals

        # Half-up rounding
        return max(0, min(100, math.floor(score + 0.5)))

    def status(self, score: int) -> WarmthStatus:
        """Warm, cooling, or cold."""
        if score >= self.warm_threshold:
            return WarmthStatus.WARM
        if score >= self.cooling_threshold:
            return WarmthStatus.COOLING
        return WarmthStatus.COLD

    def refresh(self, contacts: list[Contact], now: Optional[datetime] = None) -> list[Contact]:
        """Copies of the contacts with warmth recomputed as of ``now``."""
        now = now or datetime.now()
        refreshed = [
            c.model_copy(update={"warmth_score": self.calculate(c, now)})
            for c in contacts
        ]
        logger.debug(f"Refreshed warmth for {len(refreshed)} contacts")
        return refreshed
