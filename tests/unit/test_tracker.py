"""Download and completion transitions."""

import pytest

from structlog.testing import CapturingLogger

from puzzlehub.errors import CompletionInconsistency, DownloadInconsistency, InconsistencyError, NotFound
from puzzlehub.puzzles import tracker as tracker_module
from puzzlehub.puzzles.difficulty import score
from puzzlehub.puzzles.tracker import CompletionSample, CompletionTracker
from tests.fakes import (
    FailingUpdatePuzzleStore,
    InMemoryStorage,
    make_completion,
    make_puzzle,
    make_user,
)


def tracker_for(storage, **kwargs):
    return CompletionTracker(storage.puzzles, storage.completions, **kwargs)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def player(storage):
    return make_user(storage, "player")


class TestRecordDownload:
    @pytest.mark.asyncio
    async def test_first_download_creates_record(self, storage, player):
        puzzle = make_puzzle(storage)
        completion, updated = await tracker_for(storage).record_download(puzzle.id, player.id)

        assert completion.completed is False
        assert completion.puzzle_id == puzzle.id
        assert completion.user_id == player.id
        assert updated.downloads == 1
        assert len(storage.completions.rows) == 1

    @pytest.mark.asyncio
    async def test_repeat_download_is_idempotent(self, storage, player):
        puzzle = make_puzzle(storage)
        tracker = tracker_for(storage)

        first, _ = await tracker.record_download(puzzle.id, player.id)
        second, updated = await tracker.record_download(puzzle.id, player.id)

        assert second is first
        assert updated.downloads == 1
        assert len(storage.completions.rows) == 1

    @pytest.mark.asyncio
    async def test_distinct_users_each_count(self, storage, player):
        other = make_user(storage, "other")
        puzzle = make_puzzle(storage, downloads=5)
        tracker = tracker_for(storage)

        await tracker.record_download(puzzle.id, player.id)
        _, updated = await tracker.record_download(puzzle.id, other.id)
        assert updated.downloads == 7

    @pytest.mark.asyncio
    async def test_puzzle_row_is_locked(self, storage, player):
        puzzle = make_puzzle(storage)
        await tracker_for(storage).record_download(puzzle.id, player.id)
        assert storage.puzzles.locked == [puzzle.id]

    @pytest.mark.asyncio
    async def test_missing_puzzle(self, storage, player):
        with pytest.raises(NotFound):
            await tracker_for(storage).record_download(404, player.id)
        assert storage.completions.rows == []

    @pytest.mark.asyncio
    async def test_download_after_completion_keeps_record(self, storage, player):
        puzzle = make_puzzle(storage, downloads=1, completions=1)
        existing = make_completion(storage, puzzle, player, completed=True, liked=True, difficulty_rating=2)

        completion, updated = await tracker_for(storage).record_download(puzzle.id, player.id)
        assert completion is existing
        assert completion.completed is True
        assert updated.downloads == 1


class TestRecordCompletion:
    @pytest.mark.asyncio
    async def test_first_completion_updates_aggregate(self, storage, player):
        puzzle = make_puzzle(storage)
        tracker = tracker_for(storage)
        await tracker.record_download(puzzle.id, player.id)

        sample = CompletionSample(time=120.0, liked=True, difficulty_rating=2, components_used=4, nands_used=9)
        completion = await tracker.record_completion(puzzle.id, player.id, sample)

        assert completion.completed is True
        assert completion.liked is True
        assert completion.time_taken == 120.0
        assert completion.components_used == 4
        assert completion.nands_used == 9
        assert completion.difficulty_rating == 2
        assert completion.completed_at is not None

        assert puzzle.completions == 1
        assert puzzle.average_time == 120.0
        assert puzzle.difficulty == pytest.approx(score(120.0, 2))
        assert puzzle.likes == 1
        assert puzzle.downloads == 1

    @pytest.mark.asyncio
    async def test_running_average_over_players(self, storage, player):
        other = make_user(storage, "other")
        puzzle = make_puzzle(storage)
        tracker = tracker_for(storage)

        await tracker.record_completion(puzzle.id, player.id, CompletionSample(time=100, liked=False, difficulty_rating=1))
        await tracker.record_completion(puzzle.id, other.id, CompletionSample(time=130, liked=False, difficulty_rating=3))

        assert puzzle.completions == 2
        assert puzzle.average_time == 115
        # difficulty uses the latest rating, not an average of ratings
        assert puzzle.difficulty == pytest.approx(score(115, 3))
        assert puzzle.likes == 0

    @pytest.mark.asyncio
    async def test_not_liked_leaves_likes(self, storage, player):
        puzzle = make_puzzle(storage, likes=4, completions=2, average_time=50)
        await tracker_for(storage).record_completion(
            puzzle.id, player.id, CompletionSample(time=50, liked=False, difficulty_rating=1)
        )
        assert puzzle.likes == 4

    @pytest.mark.asyncio
    async def test_legacy_likes_parity(self, storage, player):
        puzzle = make_puzzle(storage, likes=4, completions=2, average_time=50)
        await tracker_for(storage, likes_legacy_parity=True).record_completion(
            puzzle.id, player.id, CompletionSample(time=50, liked=True, difficulty_rating=1)
        )
        assert puzzle.likes == 1

    @pytest.mark.asyncio
    async def test_completion_without_download_creates_record(self, storage, player):
        puzzle = make_puzzle(storage)
        completion = await tracker_for(storage).record_completion(
            puzzle.id, player.id, CompletionSample(time=30, liked=False, difficulty_rating=1)
        )

        assert completion.completed is True
        assert len(storage.completions.rows) == 1
        assert puzzle.completions == 1
        assert puzzle.downloads == 0

    @pytest.mark.asyncio
    async def test_already_completed_is_unchanged(self, storage, player):
        puzzle = make_puzzle(storage, completions=1, likes=1, average_time=80.0, difficulty=0.3)
        existing = make_completion(storage, puzzle, player, completed=True, liked=True, difficulty_rating=1, time_taken=80.0)

        result = await tracker_for(storage).record_completion(
            puzzle.id, player.id, CompletionSample(time=999, liked=False, difficulty_rating=3)
        )

        assert result is existing
        assert result.time_taken == 80.0
        assert puzzle.completions == 1
        assert puzzle.average_time == 80.0
        assert puzzle.difficulty == 0.3
        assert puzzle.likes == 1

    @pytest.mark.asyncio
    async def test_missing_puzzle(self, storage, player):
        with pytest.raises(NotFound):
            await tracker_for(storage).record_completion(
                9, player.id, CompletionSample(time=1, liked=False, difficulty_rating=1)
            )

    @pytest.mark.asyncio
    async def test_duplicate_records_raise(self, storage, player):
        puzzle = make_puzzle(storage)
        make_completion(storage, puzzle, player)
        make_completion(storage, puzzle, player)

        with pytest.raises(InconsistencyError):
            await tracker_for(storage).record_completion(
                puzzle.id, player.id, CompletionSample(time=1, liked=False, difficulty_rating=1)
            )


class TestPartialWrites:
    @pytest.mark.asyncio
    async def test_completion_aggregate_failure(self):
        storage = InMemoryStorage(puzzle_store_cls=FailingUpdatePuzzleStore)
        user = make_user(storage, "player")
        puzzle = make_puzzle(storage)

        with pytest.raises(CompletionInconsistency) as exc_info:
            await tracker_for(storage).record_completion(
                puzzle.id, user.id, CompletionSample(time=10, liked=True, difficulty_rating=2)
            )

        assert exc_info.value.puzzle_id == puzzle.id
        assert exc_info.value.user_id == user.id
        # record was written, aggregate was not
        assert storage.completions.rows[0].completed is True
        assert puzzle.completions == 0

    @pytest.mark.asyncio
    async def test_download_aggregate_failure(self, monkeypatch):
        storage = InMemoryStorage(puzzle_store_cls=FailingUpdatePuzzleStore)
        user = make_user(storage, "player")
        puzzle = make_puzzle(storage)
        captured = CapturingLogger()
        monkeypatch.setattr(tracker_module, "logger", captured)

        with pytest.raises(DownloadInconsistency) as exc_info:
            await tracker_for(storage).record_download(puzzle.id, user.id)

        assert not isinstance(exc_info.value, CompletionInconsistency)
        assert exc_info.value.puzzle_id == puzzle.id
        assert "Download" in str(exc_info.value)
        assert [call.args for call in captured.calls] == [("download_inconsistency",)]
        assert captured.calls[0].method_name == "error"
        assert puzzle.downloads == 0
        assert len(storage.completions.rows) == 1
