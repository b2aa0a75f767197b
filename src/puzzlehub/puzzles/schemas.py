"""Pydantic schemas for puzzle API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Submission ---


class PuzzleSubmitRequest(BaseModel):
    short_key: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=200)
    data: str = Field(..., min_length=1)  # encoded game-data blob
    description: str = Field("", max_length=2000)
    minimum_components: int = Field(0, ge=0)

    @field_validator("short_key", "title")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "must not be blank"
            raise ValueError(msg)
        return v


class PuzzleResponse(BaseModel):
    """Full puzzle aggregate, including the content blob."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    short_key: str
    title: str
    description: str
    data: str
    minimum_components: int
    author_id: int | None
    author_name: str | None
    completions: int
    downloads: int
    likes: int
    average_time: float | None
    difficulty: float | None
    created_at: datetime | None


# --- Viewer-scoped projection ---


class PuzzleMetadata(BaseModel):
    """Puzzle aggregate minus content, plus the viewer's own state."""

    id: int
    short_key: str
    title: str
    description: str
    minimum_components: int
    author_id: int | None
    author_name: str | None
    completions: int
    downloads: int
    likes: int
    average_time: float | None
    difficulty: float | None
    created_at: datetime | None
    completed: bool = False
    liked: bool = False
    difficulty_rating: str | None = None  # viewer's own rating label


class DownloadResponse(BaseModel):
    game: Any
    meta: PuzzleMetadata


# --- Completion ---


class CompletionRequest(BaseModel):
    time: float = Field(..., ge=0)  # seconds
    liked: bool
    components_used: int = Field(0, ge=0)
    nands_used: int = Field(0, ge=0)
    difficulty_rating: int = Field(..., ge=1)


class CompletionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    puzzle_id: int
    user_id: int
    completed: bool
    liked: bool | None
    time_taken: float | None
    components_used: int | None
    nands_used: int | None
    difficulty_rating: int | None
    completed_at: datetime | None


class DeleteResponse(BaseModel):
    success: bool
