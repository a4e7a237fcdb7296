"""Tests for the progress store mutations, reads and persistence."""

import json

import pytest

from almuallim.catalog import FIRST_LESSON_BADGE_ID, build_course, seed_courses, stub_login
from almuallim.errors import InvalidArgument
from almuallim.models.course import Course
from almuallim.models.user import User
from almuallim.progress.quiz import xp_for_first_attempt_only
from almuallim.progress.store import COURSES_KEY, USER_KEY, ProgressStore
from almuallim.storage.kv import MemoryStorage


class FailingStorage(MemoryStorage):
    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    s = ProgressStore(storage)
    s.set_user(User(id="u1", name="Demo Talaba", email="demo"))
    return s


def _persisted_user(storage: MemoryStorage) -> User:
    return User.model_validate_json(storage.get(USER_KEY))


class TestToggleLessonCompletion:
    def test_complete_awards_100_xp(self, store, storage):
        user = store.toggle_lesson_completion("l1")
        assert user.completed_lessons == ["l1"]
        assert user.xp == 100
        assert _persisted_user(storage) == user

    def test_uncomplete_keeps_xp(self, store):
        store.toggle_lesson_completion("l1")
        user = store.toggle_lesson_completion("l1")
        assert user.completed_lessons == []
        assert user.xp == 100

    @pytest.mark.parametrize("calls", [1, 2, 3, 4, 5])
    def test_membership_follows_call_parity(self, store, calls):
        for _ in range(calls):
            store.toggle_lesson_completion("l2")
        assert store.user.has_completed("l2") == (calls % 2 == 1)

    def test_recompletion_awards_again(self, store):
        store.toggle_lesson_completion("l1")
        store.toggle_lesson_completion("l1")
        user = store.toggle_lesson_completion("l1")
        assert user.xp == 200

    def test_first_completion_grants_badge(self, store):
        user = store.toggle_lesson_completion("l1")
        assert [b.id for b in user.badges] == [FIRST_LESSON_BADGE_ID]

    def test_stale_lesson_id_is_tolerated(self, store):
        user = store.toggle_lesson_completion("deleted-lesson")
        assert "deleted-lesson" in user.completed_lessons
        assert store.find_lesson("deleted-lesson") is None


class TestToggleBookmark:
    def test_double_toggle_is_noop(self, store):
        store.toggle_bookmark("l3")
        user = store.toggle_bookmark("l3")
        assert user.bookmarks == []

    def test_independent_of_completion(self, store):
        store.toggle_lesson_completion("l1")
        user = store.toggle_bookmark("l1")
        assert user.bookmarks == ["l1"]
        assert user.completed_lessons == ["l1"]
        assert user.xp == 100

    def test_bookmarked_lessons_skip_stale_ids(self, store):
        store.toggle_bookmark("l4")
        store.toggle_bookmark("gone")
        assert [lesson.id for lesson in store.bookmarked_lessons()] == ["l4"]


class TestAddXp:
    def test_level_invariant(self, store):
        for amount in (300, 700, 1, 999, 2500):
            user = store.add_xp(amount)
            assert user.level == user.xp // 1000 + 1

    def test_badge_once(self, store):
        store.add_xp(10)
        user = store.add_xp(10)
        assert len(user.badges) == 1

    def test_negative_clamped(self, store):
        store.add_xp(50)
        assert store.add_xp(-200).xp == 0


class TestNoActiveUser:
    def test_mutations_return_none_and_leave_storage_untouched(self):
        storage = MemoryStorage({USER_KEY: "null"})
        store = ProgressStore.load(storage)
        assert store.user is None
        assert store.toggle_lesson_completion("l1") is None
        assert store.toggle_bookmark("l1") is None
        assert store.add_xp(100) is None
        assert store.quiz_completed(2) is None
        assert storage.get(USER_KEY) == "null"

    def test_absent_key_stays_absent(self):
        storage = MemoryStorage()
        store = ProgressStore(storage)
        store.toggle_lesson_completion("l1")
        store.add_xp(5)
        assert USER_KEY not in storage

    def test_reads_are_safe(self):
        store = ProgressStore(MemoryStorage())
        assert store.progress_percentage() == 0
        assert store.level_progress() == 0
        assert store.bookmarked_lessons() == []
        assert not any(status.earned for status in store.badge_board())


class TestSetUser:
    def test_logout_clears_persisted_user(self, store, storage):
        assert storage.get(USER_KEY) is not None
        store.set_user(None)
        assert store.user is None
        assert storage.get(USER_KEY) is None

    def test_login_replaces_user(self, store):
        store.add_xp(500)
        store.set_user(stub_login("admin", "123"))
        assert store.user.is_admin
        assert store.user.xp == 5000


class TestQuizCompleted:
    def test_default_policy_awards_every_attempt(self, store):
        store.quiz_completed(2, attempt=1)
        user = store.quiz_completed(2, attempt=2)
        assert user.xp == 400

    def test_first_attempt_only_policy(self, store):
        store.quiz_completed(2, attempt=1, policy=xp_for_first_attempt_only)
        user = store.quiz_completed(2, attempt=2, policy=xp_for_first_attempt_only)
        assert user.xp == 200

    def test_award_skipped_when_another_user_is_signed_in(self, store, storage):
        before = storage.get(USER_KEY)
        assert store.quiz_completed(2, user_id="a1") is None
        assert store.user.xp == 0
        assert storage.get(USER_KEY) == before

    def test_award_goes_to_matching_owner(self, store):
        assert store.quiz_completed(2, user_id="u1").xp == 200


class TestCourses:
    def test_seeded_by_default(self):
        store = ProgressStore(MemoryStorage())
        assert [c.id for c in store.courses] == ["c1", "c2"]

    def test_add_course_appends_and_persists(self, store, storage):
        course = build_course("Sarf Basics", "Verb patterns", now_ms=1700000000000)
        store.add_course(course)
        assert store.courses[-1].id == "c1700000000000"
        persisted = json.loads(storage.get(COURSES_KEY))
        assert [c["id"] for c in persisted] == ["c1", "c2", "c1700000000000"]
        assert persisted[-1]["lessons"][0]["courseId"] == "c1700000000000"

    def test_duplicate_course_id_rejected(self, store, storage):
        with pytest.raises(InvalidArgument):
            store.add_course(seed_courses()[0])
        assert storage.get(COURSES_KEY) is None
        assert len(store.courses) == 2

    def test_courses_property_is_a_copy(self, store):
        store.courses.clear()
        assert len(store.courses) == 2

    def test_find_course_and_lesson(self, store):
        assert store.find_course("c2").title == "Tajweed Rules for Beginners"
        assert store.find_course("zzz") is None
        assert store.find_lesson("l3").course_id == "c2"


class TestDerivedViews:
    def test_progress_percentage(self, store):
        store.toggle_lesson_completion("l1")
        assert store.progress_percentage() == 25
        store.toggle_lesson_completion("l3")
        store.toggle_lesson_completion("l4")
        assert store.progress_percentage() == 75

    def test_progress_percentage_ignores_stale_ids(self, store):
        store.toggle_lesson_completion("gone")
        store.toggle_lesson_completion("l1")
        assert store.progress_percentage() == 25
        for lesson_id in ("l2", "l3", "l4"):
            store.toggle_lesson_completion(lesson_id)
        assert store.progress_percentage() == 100

    def test_progress_percentage_empty_catalog(self):
        store = ProgressStore(MemoryStorage(), courses=[])
        store.set_user(User(id="u1", name="n", email="e", completed_lessons=["l1"]))
        assert store.progress_percentage() == 0

    def test_level_progress(self, store):
        store.add_xp(1250)
        assert store.level_progress() == 250

    def test_badge_board_lists_catalog(self, store):
        store.add_xp(100)
        board = store.badge_board()
        assert [s.badge.id for s in board] == ["b1", "b2", "b3", "b4"]
        assert [s.earned for s in board] == [False, True, False, False]
        assert board[1].badge.earned_at is not None


class TestPersistence:
    def test_load_restores_state(self, store, storage):
        store.toggle_lesson_completion("l1")
        store.toggle_bookmark("l2")
        store.add_course(build_course("Lughat", "Words", now_ms=1))

        restored = ProgressStore.load(storage)
        assert restored.user == store.user
        assert restored.courses == store.courses

    def test_load_defaults_when_absent(self):
        store = ProgressStore.load(MemoryStorage())
        assert store.user is None
        assert [c.id for c in store.courses] == ["c1", "c2"]

    def test_corrupt_values_fall_back(self):
        storage = MemoryStorage({USER_KEY: "{not json", COURSES_KEY: '[{"id": 1}]'})
        store = ProgressStore.load(storage)
        assert store.user is None
        assert len(store.courses) == 2

    def test_empty_course_list_roundtrip(self):
        store = ProgressStore(MemoryStorage(), courses=[])
        store.add_course(Course(id="only", title="t", description="d"))
        restored = ProgressStore.load(store.storage)
        assert restored.courses == store.courses
        assert restored.courses[0].lessons == []

    def test_empty_persisted_course_list(self):
        assert ProgressStore.load(MemoryStorage({COURSES_KEY: "[]"})).courses == []

    def test_failed_write_leaves_memory_unchanged(self):
        user = User(id="u1", name="n", email="e")
        store = ProgressStore(FailingStorage(), user=user)
        with pytest.raises(OSError):
            store.toggle_lesson_completion("l1")
        assert store.user == user
        with pytest.raises(OSError):
            store.add_course(Course(id="new", title="t", description="d"))
        assert len(store.courses) == 2
