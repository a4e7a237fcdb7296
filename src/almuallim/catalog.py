"""Bootstrap content: badge catalog, seeded courses, stub accounts."""

import time

from almuallim.models.course import Course, CourseCategory, CourseLevel, Lesson, Question, Quiz
from almuallim.models.user import Badge, User, UserRole

FIRST_LESSON_BADGE_ID = "b2"

BADGE_CATALOG: list[Badge] = [
    Badge(
        id="b1",
        name="7-Kunlik Zanjir",
        description="7 kun davomida darslarni ko'rib borish.",
        icon="🔥",
    ),
    Badge(
        id=FIRST_LESSON_BADGE_ID,
        name="Birinchi Surah",
        description="Birinchi darsni muvaffaqiyatli tugatish.",
        icon="📖",
    ),
    Badge(
        id="b3",
        name="Bilimdon",
        description="Birinchi testdan 100% natija olish.",
        icon="🎓",
    ),
    Badge(
        id="b4",
        name="Muxlis",
        description="5 ta darsni saqlab qo'yish.",
        icon="❤️",
    ),
]

_PLACEHOLDER_VIDEO = "https://www.youtube.com/embed/dQw4w9WgXcQ"


def badge_by_id(badge_id: str) -> Badge | None:
    return next((b for b in BADGE_CATALOG if b.id == badge_id), None)


def seed_courses() -> list[Course]:
    """Return a fresh copy of the bootstrap course catalog."""
    basics_quiz = Quiz(
        id="q1",
        course_id="c1",
        title="Arabic Basics Quiz",
        questions=[
            Question(
                id="qu1",
                text="Arab alifbosida nechta harf bor?",
                options=["24", "26", "28", "30"],
                correct_option_index=2,
                explanation="Arab alifbosida 28 ta asosiy harf mavjud.",
            ),
            Question(
                id="qu2",
                text='"Fatha" belgisi harfning qayeriga qo\'yiladi?',
                options=["Tepasiga", "Pastiga", "Yoniga", "Ichiga"],
                correct_option_index=0,
                explanation="Fatha belgisi harfning tepasiga qo'yiladi va \"a\" tovushini beradi.",
            ),
        ],
    )
    return [
        Course(
            id="c1",
            title="Arabic Grammar Essentials",
            description=(
                "Master the foundation of Arabic sentences and word structures (Nahw & Sarf)."
            ),
            level=CourseLevel.BEGINNER,
            category=CourseCategory.GRAMMAR,
            thumbnail="https://picsum.photos/seed/arabic1/800/450",
            quiz=basics_quiz,
            lessons=[
                Lesson(
                    id="l1",
                    course_id="c1",
                    title="The Arabic Alphabet",
                    content="Introduction to the 28 letters of the Arabic alphabet...",
                    video_url=_PLACEHOLDER_VIDEO,
                    duration="15 min",
                ),
                Lesson(
                    id="l2",
                    course_id="c1",
                    title="Nouns vs Verbs",
                    content="Differentiating between Ism and Fi'l in Arabic grammar...",
                    video_url=_PLACEHOLDER_VIDEO,
                    duration="20 min",
                ),
            ],
        ),
        Course(
            id="c2",
            title="Tajweed Rules for Beginners",
            description=(
                "Learn the correct pronunciation of the Quranic text with basic Tajweed rules."
            ),
            level=CourseLevel.BEGINNER,
            category=CourseCategory.TAJWEED,
            thumbnail="https://picsum.photos/seed/tajweed1/800/450",
            lessons=[
                Lesson(
                    id="l3",
                    course_id="c2",
                    title="Articulation Points (Makharij)",
                    content=(
                        "Understanding where each letter originates from the mouth and throat..."
                    ),
                    video_url=_PLACEHOLDER_VIDEO,
                    duration="25 min",
                ),
                Lesson(
                    id="l4",
                    course_id="c2",
                    title="Rules of Noon Sakinah",
                    content="Mastering Izhaar, Idghaam, Iqlaab, and Ikhfaa...",
                    video_url=_PLACEHOLDER_VIDEO,
                    duration="30 min",
                ),
            ],
        ),
    ]


def stub_login(email: str, password: str) -> User:
    """Resolve the demo login form to one of two hardcoded accounts.

    ``admin`` / ``123`` signs in as the instructor; anything else is the
    demo student. No account is looked up or persisted here.
    """
    if email == "admin" and password == "123":
        return User(id="a1", name="Ustoz (Admin)", email=email, role=UserRole.ADMIN, xp=5000)
    return User(id="u1", name="Demo Talaba", email=email, role=UserRole.STUDENT)


def build_course(
    title: str,
    description: str,
    level: CourseLevel = CourseLevel.BEGINNER,
    category: CourseCategory = CourseCategory.GRAMMAR,
    now_ms: int | None = None,
) -> Course:
    """Build an admin-uploaded course with time-based ids and an intro lesson."""
    stamp = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    course_id = f"c{stamp}"
    return Course(
        id=course_id,
        title=title,
        description=description,
        level=level,
        category=category,
        thumbnail=f"https://picsum.photos/seed/{title}/800/450",
        lessons=[
            Lesson(
                id=f"l{stamp}",
                course_id=course_id,
                title=f"Intro to {title}",
                content="Tavsif...",
                video_url=_PLACEHOLDER_VIDEO,
                duration="10 min",
            )
        ],
    )
