"""Course catalog models."""

from enum import StrEnum

from pydantic import Field, model_validator

from almuallim.models.user import WireModel


class CourseLevel(StrEnum):
    """Course difficulty tiers."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class CourseCategory(StrEnum):
    """Subject areas offered in the catalog."""

    GRAMMAR = "Grammar"
    TAJWEED = "Tajweed"
    VOCABULARY = "Vocabulary"


class Lesson(WireModel):
    """A single lesson; ``course_id`` points back at its owning course."""

    id: str
    course_id: str
    title: str
    content: str
    video_url: str | None = None
    image_url: str | None = None
    duration: str


class Question(WireModel):
    """Multiple-choice question with a 0-based correct option index."""

    id: str
    text: str
    options: list[str]
    correct_option_index: int
    explanation: str = ""

    @model_validator(mode="after")
    def _check_correct_option(self) -> "Question":
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(
                f"correct_option_index {self.correct_option_index} is outside "
                f"the {len(self.options)} available options"
            )
        return self


class Quiz(WireModel):
    """Ordered questions attached to a course, optionally scoped to one lesson."""

    id: str
    course_id: str
    lesson_id: str | None = None
    title: str
    questions: list[Question] = Field(default_factory=list)


class Course(WireModel):
    """Static catalog entry."""

    id: str
    title: str
    description: str
    level: CourseLevel = CourseLevel.BEGINNER
    category: CourseCategory = CourseCategory.GRAMMAR
    thumbnail: str = ""
    lessons: list[Lesson] = Field(default_factory=list)
    quiz: Quiz | None = None

    def find_lesson(self, lesson_id: str) -> Lesson | None:
        return next((lesson for lesson in self.lessons if lesson.id == lesson_id), None)
