"""Progress store: the single owner of the current user and course catalog."""

import json
from collections.abc import Callable

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from almuallim.catalog import BADGE_CATALOG, seed_courses
from almuallim.errors import InvalidArgument
from almuallim.models.course import Course, Lesson
from almuallim.models.user import Badge, User
from almuallim.progress.leveling import LESSON_COMPLETION_XP, apply_xp, xp_into_level
from almuallim.progress.quiz import QuizXpPolicy, xp_for_every_attempt
from almuallim.storage.kv import KeyValueStorage

logger = structlog.get_logger()

USER_KEY = "user"
COURSES_KEY = "courses"

_courses_adapter = TypeAdapter(list[Course])


class BadgeStatus(BaseModel):
    """A catalog badge together with whether the user holds it."""

    badge: Badge
    earned: bool


class ProgressStore:
    """Owns the user and course list; every mutation is committed to storage.

    Mutations that need a user return ``None`` without touching state or
    storage when nobody is signed in, and the new ``User`` otherwise.

    Args:
        storage: Durable key-value backend.
        user: Initial user (``None`` when signed out).
        courses: Initial course catalog.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        user: User | None = None,
        courses: list[Course] | None = None,
    ):
        self.storage = storage
        self._user = user
        self._courses: list[Course] = list(courses) if courses is not None else seed_courses()

    @classmethod
    def load(cls, storage: KeyValueStorage) -> "ProgressStore":
        """Restore state from storage, falling back to defaults for absent or corrupt values."""
        user: User | None = None
        raw_user = storage.get(USER_KEY)
        if raw_user is not None:
            try:
                if json.loads(raw_user) is not None:
                    user = User.model_validate_json(raw_user)
            except (ValueError, ValidationError):
                logger.warning("persisted_user_invalid", key=USER_KEY)

        courses: list[Course] | None = None
        raw_courses = storage.get(COURSES_KEY)
        if raw_courses is not None:
            try:
                courses = _courses_adapter.validate_json(raw_courses)
            except (ValueError, ValidationError):
                logger.warning("persisted_courses_invalid", key=COURSES_KEY)

        logger.info(
            "progress_store_loaded",
            signed_in=user is not None,
            course_count=len(courses) if courses is not None else None,
        )
        return cls(storage, user=user, courses=courses)

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def courses(self) -> list[Course]:
        return list(self._courses)

    # -- commit ---------------------------------------------------------

    def _commit_user(self, user: User | None) -> None:
        """Write ``user`` and adopt it in memory; on write failure memory is unchanged."""
        if user is None:
            self.storage.delete(USER_KEY)
        else:
            self.storage.set(USER_KEY, user.model_dump_json(by_alias=True))
        self._user = user

    def _commit_courses(self, courses: list[Course]) -> None:
        payload = _courses_adapter.dump_json(courses, by_alias=True).decode("utf-8")
        self.storage.set(COURSES_KEY, payload)
        self._courses = courses

    def _mutate_user(self, event: str, change: Callable[[User], User], **context) -> User | None:
        if self._user is None:
            logger.debug("mutation_ignored_no_user", mutation=event, **context)
            return None
        updated = change(self._user)
        self._commit_user(updated)
        logger.info(event, user_id=updated.id, xp=updated.xp, level=updated.level, **context)
        return updated

    # -- mutations ------------------------------------------------------

    def set_user(self, user: User | None) -> None:
        """Replace the whole user record; ``None`` signs out and clears storage."""
        self._commit_user(user)
        logger.info("user_set", user_id=user.id if user else None)

    def add_xp(self, amount: int) -> User | None:
        return self._mutate_user("xp_added", lambda u: apply_xp(u, amount), amount=amount)

    def toggle_lesson_completion(self, lesson_id: str) -> User | None:
        def change(user: User) -> User:
            if user.has_completed(lesson_id):
                remaining = [i for i in user.completed_lessons if i != lesson_id]
                return user.model_copy(update={"completed_lessons": remaining})
            awarded = apply_xp(user, LESSON_COMPLETION_XP)
            return awarded.model_copy(
                update={"completed_lessons": [*user.completed_lessons, lesson_id]}
            )

        return self._mutate_user("lesson_completion_toggled", change, lesson_id=lesson_id)

    def toggle_bookmark(self, lesson_id: str) -> User | None:
        def change(user: User) -> User:
            if user.has_bookmarked(lesson_id):
                bookmarks = [i for i in user.bookmarks if i != lesson_id]
            else:
                bookmarks = [*user.bookmarks, lesson_id]
            return user.model_copy(update={"bookmarks": bookmarks})

        return self._mutate_user("bookmark_toggled", change, lesson_id=lesson_id)

    def quiz_completed(
        self,
        score: int,
        attempt: int = 1,
        policy: QuizXpPolicy = xp_for_every_attempt,
        user_id: str | None = None,
    ) -> User | None:
        """Award XP for a finished quiz attempt according to ``policy``.

        When ``user_id`` is given, the award is skipped unless that user is
        still the one signed in.
        """
        if user_id is not None and (self._user is None or self._user.id != user_id):
            logger.info("quiz_xp_skipped_user_changed", quiz_owner=user_id, score=score)
            return None
        amount = policy(score, attempt)
        return self._mutate_user(
            "quiz_xp_awarded",
            lambda u: apply_xp(u, amount),
            score=score,
            attempt=attempt,
            amount=amount,
        )

    def add_course(self, course: Course) -> Course:
        """Append a course to the catalog.

        Raises:
            InvalidArgument: A course with the same id already exists.
        """
        if self.find_course(course.id) is not None:
            raise InvalidArgument(f"Course id already exists: {course.id}")
        self._commit_courses([*self._courses, course])
        logger.info("course_added", course_id=course.id, lesson_count=len(course.lessons))
        return course

    # -- reads ----------------------------------------------------------

    def find_course(self, course_id: str) -> Course | None:
        return next((c for c in self._courses if c.id == course_id), None)

    def all_lessons(self) -> list[Lesson]:
        return [lesson for course in self._courses for lesson in course.lessons]

    def find_lesson(self, lesson_id: str) -> Lesson | None:
        return next((lesson for lesson in self.all_lessons() if lesson.id == lesson_id), None)

    def bookmarked_lessons(self) -> list[Lesson]:
        """Bookmarked lessons that still exist in the catalog."""
        if self._user is None:
            return []
        bookmarks = set(self._user.bookmarks)
        return [lesson for lesson in self.all_lessons() if lesson.id in bookmarks]

    def progress_percentage(self) -> int:
        """Completed catalog lessons as a rounded percentage of all lessons.

        Completed ids no longer in the catalog are not counted, so the result
        stays within 0-100; an empty catalog gives 0.
        """
        lesson_ids = {lesson.id for lesson in self.all_lessons()}
        if self._user is None or not lesson_ids:
            return 0
        done = sum(1 for lesson_id in self._user.completed_lessons if lesson_id in lesson_ids)
        return round(done / len(lesson_ids) * 100)

    def level_progress(self) -> int:
        return xp_into_level(self._user.xp) if self._user is not None else 0

    def badge_board(self) -> list[BadgeStatus]:
        """Every catalog badge, marked earned when the user holds it."""
        held = {b.id: b for b in self._user.badges} if self._user is not None else {}
        return [
            BadgeStatus(badge=held.get(badge.id, badge), earned=badge.id in held)
            for badge in BADGE_CATALOG
        ]
