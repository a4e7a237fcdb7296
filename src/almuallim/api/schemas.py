"""Request and response bodies for the REST API."""

from pydantic import BaseModel, Field

from almuallim.models.course import CourseCategory, CourseLevel
from almuallim.progress.quiz import QuizState


class LoginRequest(BaseModel):
    email: str
    password: str


class XpRequest(BaseModel):
    amount: int


class NewCourseRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    level: CourseLevel = CourseLevel.BEGINNER
    category: CourseCategory = CourseCategory.GRAMMAR


class OptionRequest(BaseModel):
    index: int


class QuizSessionResponse(BaseModel):
    session_id: str
    quiz_id: str
    state: QuizState


class TutorRequest(BaseModel):
    prompt: str = Field(min_length=1)


class TutorResponse(BaseModel):
    reply: str


class RecitationRequest(BaseModel):
    audio: str
    format: str = "wav"


class RecitationResponse(BaseModel):
    feedback: str
