"""Puzzle endpoints under /api/v1/puzzles."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from puzzlehub.auth.dependencies import get_current_user_id
from puzzlehub.dependencies import get_puzzle_service
from puzzlehub.puzzles.buckets import ANY
from puzzlehub.puzzles.catalog import SearchCriteria
from puzzlehub.puzzles.schemas import (
    CompletionRequest,
    CompletionResponse,
    DeleteResponse,
    DownloadResponse,
    PuzzleMetadata,
    PuzzleResponse,
    PuzzleSubmitRequest,
)
from puzzlehub.puzzles.service import PuzzleService
from puzzlehub.puzzles.tracker import CompletionSample

router = APIRouter(prefix="/api/v1/puzzles", tags=["Puzzles"])


@router.get("/list/{category}", response_model=list[PuzzleMetadata])
async def list_puzzles(
    category: str,
    user_id: int = Depends(get_current_user_id),
    svc: PuzzleService = Depends(get_puzzle_service),
) -> list[PuzzleMetadata]:
    """Puzzles in a category, with the viewer's completed/liked state."""
    return await svc.list(category, user_id)


@router.get("/search", response_model=list[PuzzleMetadata])
async def search_puzzles(
    search_term: str = Query("", max_length=200),
    duration: str = Query(ANY),
    difficulty: str = Query(ANY),
    include_completed: bool = Query(True),
    user_id: int = Depends(get_current_user_id),
    svc: PuzzleService = Depends(get_puzzle_service),
) -> list[PuzzleMetadata]:
    """Case-insensitive title/description search with bucket filters."""
    criteria = SearchCriteria(
        search_term=search_term,
        duration=duration,
        difficulty=difficulty,
        include_completed=include_completed,
    )
    return await svc.search(criteria, user_id)


@router.post("", response_model=PuzzleResponse, status_code=201)
async def submit_puzzle(
    body: PuzzleSubmitRequest,
    user_id: int = Depends(get_current_user_id),
    svc: PuzzleService = Depends(get_puzzle_service),
) -> PuzzleResponse:
    """Submit a new puzzle authored by the caller."""
    puzzle = await svc.submit(body, user_id)
    await svc.storage.commit()
    return PuzzleResponse.model_validate(puzzle)


@router.get("/{puzzle_id}/download", response_model=DownloadResponse)
async def download_puzzle(
    puzzle_id: int,
    user_id: int = Depends(get_current_user_id),
    svc: PuzzleService = Depends(get_puzzle_service),
) -> DownloadResponse:
    """Game data plus metadata. The first download per user is counted."""
    result = await svc.download(puzzle_id, user_id)
    await svc.storage.commit()
    return result


@router.post("/{puzzle_id}/complete", response_model=CompletionResponse)
async def complete_puzzle(
    puzzle_id: int,
    body: CompletionRequest,
    user_id: int = Depends(get_current_user_id),
    svc: PuzzleService = Depends(get_puzzle_service),
) -> CompletionResponse:
    """Record the caller's completion and update the puzzle's statistics."""
    sample = CompletionSample(
        time=body.time,
        liked=body.liked,
        difficulty_rating=body.difficulty_rating,
        components_used=body.components_used,
        nands_used=body.nands_used,
    )
    completion = await svc.complete(puzzle_id, user_id, sample)
    await svc.storage.commit()
    return CompletionResponse.model_validate(completion)


@router.delete("/{puzzle_id}", response_model=DeleteResponse)
async def delete_puzzle(
    puzzle_id: int,
    user_id: int = Depends(get_current_user_id),
    svc: PuzzleService = Depends(get_puzzle_service),
) -> DeleteResponse:
    """Delete one of the caller's puzzles. ``success`` is false if nothing was deleted."""
    success = await svc.delete(puzzle_id, user_id)
    if success:
        await svc.storage.commit()
    return DeleteResponse(success=success)
