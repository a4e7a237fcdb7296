"""Learner account, badge and activity models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

XP_PER_LEVEL = 1000


def level_for_xp(xp: int) -> int:
    """Level tier for an XP total: 0-999 is level 1, 1000-1999 level 2, ..."""
    return max(xp, 0) // XP_PER_LEVEL + 1


class WireModel(BaseModel):
    """Base for records persisted and served in the client's camelCase shape."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class UserRole(StrEnum):
    """Account roles."""

    ADMIN = "ADMIN"
    STUDENT = "STUDENT"


class Badge(WireModel):
    """A named achievement, optionally stamped with when it was earned."""

    id: str
    name: str
    description: str
    icon: str
    earned_at: str | None = None


class Activity(WireModel):
    """One day of learning telemetry."""

    date: str
    lessons_completed: int = 0
    xp_earned: int = 0


def _unique(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class User(WireModel):
    """The signed-in learner.

    ``completed_lessons`` and ``bookmarks`` are sets of lesson ids kept as
    duplicate-free lists so they serialize in insertion order. ``level`` is
    derived from ``xp`` and cannot be set directly; a persisted ``level``
    value is ignored on load.
    """

    id: str
    name: str
    email: str
    role: UserRole = UserRole.STUDENT
    avatar: str | None = None
    completed_lessons: list[str] = Field(default_factory=list)
    bookmarks: list[str] = Field(default_factory=list)
    xp: int = Field(default=0, ge=0)
    badges: list[Badge] = Field(default_factory=list)
    activity_log: list[Activity] = Field(default_factory=list)

    @computed_field
    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    @field_validator("completed_lessons", "bookmarks")
    @classmethod
    def _dedupe_ids(cls, value: list[str]) -> list[str]:
        return _unique(value)

    @field_validator("badges")
    @classmethod
    def _dedupe_badges(cls, value: list[Badge]) -> list[Badge]:
        seen: dict[str, Badge] = {}
        for badge in value:
            seen.setdefault(badge.id, badge)
        return list(seen.values())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def has_completed(self, lesson_id: str) -> bool:
        return lesson_id in self.completed_lessons

    def has_bookmarked(self, lesson_id: str) -> bool:
        return lesson_id in self.bookmarks
