"""
Follow-up Nudges

Suggests reaching out to contacts whose last interaction has gone stale.
"""

import logging
from datetime import datetime
from typing import Optional

from warmline.models.entities import Contact, Nudge, NudgePriority, NudgeType
from warmline.models.warmth import WarmthCalculator

logger = logging.getLogger(__name__)


class NudgeGenerator:
    """Builds decay nudges from contact recency and warmth."""

    def __init__(
        self,
        decay_after_days: int = 60,
        high_priority_below: int = 50,
        calculator: Optional[WarmthCalculator] = None,
    ):
        self.decay_after_days = decay_after_days
        self.high_priority_below = high_priority_below
        self.calculator = calculator or WarmthCalculator()

    def decay_nudge(self, contact: Contact, now: datetime) -> Optional[Nudge]:
        """A decay nudge for one contact, or None if it is still fresh."""
        if contact.last_interaction is None:
            return None

        days = self.calculator.days_since(contact.last_interaction, now)
        if days < self.decay_after_days:
            return None

        warmth = self.calculator.calculate(contact, now)
        first_name = contact.name.split()[0]
        return Nudge(
            contact_id=contact.id,
            type=NudgeType.DECAY,
            message=f"It's been {days} days since you last spoke with {first_name}. Keep warm?",
            priority=(
                NudgePriority.HIGH if warmth < self.high_priority_below
                else NudgePriority.MEDIUM
            ),
            date=now,
        )

    def generate(self, contacts: list[Contact], now: Optional[datetime] = None) -> list[Nudge]:
        """Decay nudges for every stale contact, most urgent first."""
        now = now or datetime.now()
        nudges = [n for n in (self.decay_nudge(c, now) for c in contacts) if n]

        order = {NudgePriority.HIGH: 0, NudgePriority.MEDIUM: 1, NudgePriority.LOW: 2}
        nudges.sort(key=lambda n: order[n.priority])

        logger.info(f"Generated {len(nudges)} decay nudges from {len(contacts)} contacts")
        return nudges
