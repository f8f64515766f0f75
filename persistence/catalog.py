from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .schema import CollectionSchema

QUIZZES = "quizzes"
IMAGES = "images"


class QuizRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    createdAt: str
    title: str = Field(min_length=1, max_length=200)
    category: str = Field(min_length=1, max_length=50)
    content: str = Field(min_length=1)
    views: int = Field(default=0, ge=0)
    imageUrl: str | None = None


class ImageRecord(BaseModel):
    """
    Metadata for an uploaded banner/illustration. The bytes themselves are
    stored and served elsewhere; only the public URL is kept here.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    createdAt: str
    url: str = Field(min_length=1)
    title: str = ""
    link: str | None = None


QUIZ_SCHEMA = CollectionSchema(
    required=("title", "category", "content"),
    mutable=("title", "category", "content", "imageUrl"),
    defaults={"views": 0, "imageUrl": None},
    counters=("views",),
    seed_counters=False,
    allow_extra=False,
    model=QuizRecord,
)

IMAGE_SCHEMA = CollectionSchema(
    required=("url",),
    mutable=("title", "link"),
    defaults={"title": "", "link": None},
    allow_extra=False,
    model=ImageRecord,
)
