"""Category listings and search composition."""

import pytest

from puzzlehub.config import Settings
from puzzlehub.errors import InvalidArgument
from puzzlehub.puzzles.buckets import DifficultyRanges
from puzzlehub.puzzles.catalog import CATEGORIES, CatalogQuery, SearchCriteria
from puzzlehub.puzzles.enricher import MetadataEnricher
from tests.fakes import InMemoryStorage, make_completion, make_puzzle, make_user


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def catalog(storage):
    settings = Settings(_env_file=None)
    enricher = MetadataEnricher(storage.completions, settings.rating_labels)
    return CatalogQuery(storage.puzzles, enricher, DifficultyRanges(settings.difficulty_ranges))


@pytest.fixture
def alice(storage):
    return make_user(storage, "alice")


@pytest.fixture
def bob(storage):
    return make_user(storage, "bob")


def titles(results):
    return [r.title for r in results]


class TestList:
    @pytest.mark.asyncio
    async def test_official_only_has_no_author(self, storage, catalog, alice, bob):
        make_puzzle(storage, title="Official")
        make_puzzle(storage, title="Alice's", author=alice)

        assert titles(await catalog.list("official", alice.id)) == ["Official"]
        assert titles(await catalog.list("official", bob.id)) == ["Official"]

    @pytest.mark.asyncio
    async def test_mine(self, storage, catalog, alice, bob):
        make_puzzle(storage, title="Alice's", author=alice)
        make_puzzle(storage, title="Bob's", author=bob)

        assert titles(await catalog.list("mine", alice.id)) == ["Alice's"]

    @pytest.mark.asyncio
    async def test_completed_excludes_downloaded_only(self, storage, catalog, alice):
        done = make_puzzle(storage, title="Done")
        started = make_puzzle(storage, title="Started")
        make_puzzle(storage, title="Untouched")
        make_completion(storage, done, alice, completed=True, liked=True, difficulty_rating=1)
        make_completion(storage, started, alice)

        results = await catalog.list("completed", alice.id)
        assert titles(results) == ["Done"]
        assert results[0].completed is True
        assert results[0].liked is True
        assert results[0].difficulty_rating == "easy"

    @pytest.mark.asyncio
    async def test_new_is_newest_first(self, storage, catalog, alice):
        make_puzzle(storage, title="Old", age_minutes=60)
        make_puzzle(storage, title="Newest", age_minutes=0)
        make_puzzle(storage, title="Middle", age_minutes=30)

        assert titles(await catalog.list("new", alice.id)) == ["Newest", "Middle", "Old"]

    @pytest.mark.asyncio
    async def test_top_rated_by_likes(self, storage, catalog, alice):
        make_puzzle(storage, title="Meh", likes=1)
        make_puzzle(storage, title="Loved", likes=10)
        make_puzzle(storage, title="Liked", likes=5)

        assert titles(await catalog.list("top-rated", alice.id)) == ["Loved", "Liked", "Meh"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("category", "expected"),
        [("easy", ["Easy"]), ("medium", ["Medium"]), ("hard", ["Hard"])],
    )
    async def test_difficulty_categories(self, storage, catalog, alice, category, expected):
        make_puzzle(storage, title="Easy", difficulty=0.1)
        make_puzzle(storage, title="Medium", difficulty=0.33)
        make_puzzle(storage, title="Hard", difficulty=0.66)
        make_puzzle(storage, title="Unplayed", difficulty=None)

        assert titles(await catalog.list(category, alice.id)) == expected

    @pytest.mark.asyncio
    async def test_invalid_category(self, catalog, alice):
        with pytest.raises(InvalidArgument, match="Invalid category"):
            await catalog.list("popular", alice.id)

    def test_category_names(self):
        assert set(CATEGORIES) == {"official", "completed", "mine", "new", "top-rated", "easy", "medium", "hard"}


class TestSearch:
    @pytest.mark.asyncio
    async def test_empty_term_matches_all(self, storage, catalog, alice):
        make_puzzle(storage, title="One")
        make_puzzle(storage, title="Two")

        assert titles(await catalog.search(SearchCriteria(), alice.id)) == ["One", "Two"]

    @pytest.mark.asyncio
    async def test_term_matches_title_or_description_case_insensitively(self, storage, catalog, alice):
        make_puzzle(storage, title="Full ADDER")
        make_puzzle(storage, title="Mux", description="built from an adder chain")
        make_puzzle(storage, title="Latch")

        results = await catalog.search(SearchCriteria(search_term="adder"), alice.id)
        assert titles(results) == ["Full ADDER", "Mux"]

    @pytest.mark.asyncio
    async def test_filters_compose(self, storage, catalog, alice):
        """Only an uncompleted medium-difficulty short puzzle survives all filters."""
        make_puzzle(storage, title="A", difficulty=0.5, average_time=100)
        make_puzzle(storage, title="B", difficulty=0.5, average_time=300)
        make_puzzle(storage, title="C", difficulty=0.1, average_time=100)
        d = make_puzzle(storage, title="D", difficulty=0.5, average_time=60)
        make_completion(storage, d, alice, completed=True, liked=False)

        criteria = SearchCriteria(duration="short", difficulty="medium", include_completed=False)
        assert titles(await catalog.search(criteria, alice.id)) == ["A"]

    @pytest.mark.asyncio
    async def test_include_completed_keeps_completed(self, storage, catalog, alice):
        done = make_puzzle(storage, title="Done")
        make_completion(storage, done, alice, completed=True, liked=False)

        results = await catalog.search(SearchCriteria(include_completed=True), alice.id)
        assert titles(results) == ["Done"]

    @pytest.mark.asyncio
    async def test_duration_excludes_never_completed(self, storage, catalog, alice):
        make_puzzle(storage, title="Fresh", average_time=None)
        make_puzzle(storage, title="Long", average_time=900)

        assert titles(await catalog.search(SearchCriteria(duration="long"), alice.id)) == ["Long"]

    @pytest.mark.asyncio
    async def test_unknown_difficulty_bucket(self, catalog, alice):
        with pytest.raises(InvalidArgument, match="Unknown difficulty"):
            await catalog.search(SearchCriteria(difficulty="insane"), alice.id)

    @pytest.mark.asyncio
    async def test_unknown_duration_bucket(self, catalog, alice):
        with pytest.raises(InvalidArgument, match="Unknown duration"):
            await catalog.search(SearchCriteria(duration="eternal"), alice.id)
