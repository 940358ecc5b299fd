"""Request and response bodies for the REST API."""

from pydantic import BaseModel, Field, StrictBool, model_validator


class EvaluateRequest(BaseModel):
    spoken: str
    target: str


class EvaluateResponse(BaseModel):
    spoken: str
    target: str
    is_match: bool


class LearnerUpdateRequest(BaseModel):
    name: str | None = None
    grade_level: str | None = None
    mastery_threshold: int | None = Field(default=None, ge=1)
    timer_seconds: int | None = Field(default=None, ge=1)
    demote_on_miss: bool | None = None
    voice_preference: str | None = None


class AddWordsRequest(BaseModel):
    """Either an explicit word list or a passage to extract words from."""

    words: list[str] = Field(default_factory=list)
    text: str | None = None

    @model_validator(mode="after")
    def require_input(self) -> "AddWordsRequest":
        if not self.words and not (self.text and self.text.strip()):
            raise ValueError("Provide words or text")
        return self


class AddWordsResponse(BaseModel):
    created: list[str]
    candidates: int


class BookCreateRequest(AddWordsRequest):
    title: str = Field(min_length=1)
    author: str | None = None


class ReadingSessionRequest(BaseModel):
    text: str = Field(min_length=1)
    book_title: str = "Reading Session"


class VerdictMessage(BaseModel):
    """Explicit answer sent by the browser during practice."""

    is_correct: StrictBool
    word_id: str | None = None


class ReadingWordsMessage(BaseModel):
    words: list[str] = Field(min_length=1)
