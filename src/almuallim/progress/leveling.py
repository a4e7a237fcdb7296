"""XP, level and badge rules.

Everything here is pure: functions take a ``User`` and return a new one.
Only the first-lesson badge is awarded automatically; the streak,
perfect-quiz and five-bookmark badges exist in the catalog but have no rule.
"""

from datetime import UTC, datetime

from almuallim.catalog import FIRST_LESSON_BADGE_ID, badge_by_id
from almuallim.models.user import XP_PER_LEVEL, Badge, User

LESSON_COMPLETION_XP = 100


def xp_into_level(xp: int) -> int:
    """XP earned inside the current level, for the progress bar."""
    return max(xp, 0) % XP_PER_LEVEL


def has_badge(user: User, badge_id: str) -> bool:
    return any(b.id == badge_id for b in user.badges)


def grant_badge(badges: list[Badge], badge_id: str, now: datetime) -> list[Badge]:
    """Return ``badges`` with the catalog badge added, or unchanged if already held."""
    if any(b.id == badge_id for b in badges):
        return badges
    template = badge_by_id(badge_id)
    if template is None:
        raise KeyError(f"Unknown badge: {badge_id}")
    return [*badges, template.model_copy(update={"earned_at": now.isoformat()})]


def apply_xp(user: User, delta: int, now: datetime | None = None) -> User:
    """Add ``delta`` XP, re-derive the level and evaluate badge rules.

    XP is clamped at 0 so a negative delta can never push the level below 1.

    Args:
        user: Current user record.
        delta: XP to add; may be zero or negative.
        now: Timestamp for newly earned badges (defaults to current UTC time).

    Returns:
        New user with ``xp`` and ``badges`` replaced; other fields unchanged.
    """
    new_xp = max(user.xp + delta, 0)
    badges = list(user.badges)
    if new_xp > 0:
        badges = grant_badge(badges, FIRST_LESSON_BADGE_ID, now or datetime.now(UTC))
    return user.model_copy(update={"xp": new_xp, "badges": badges})
