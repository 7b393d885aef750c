# @TASK P2-T2.5 - Hybrid blog search tests
# @TEST tests/test_engine.py

"""Tests for the hybrid lexical/fuzzy blog search engine.

Verifies the empty-query short-circuit, the sufficiency threshold, id
exclusion, exact-before-fuzzy ordering, the result cap, and graceful
degradation when the fuzzy phase fails. Providers are mocks, so no
PostgreSQL database is required.
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from app.models import PostStatus
from app.search.engine import (
    BlogSearchEngine,
    FuzzySearchStrategy,
    LexicalSearchStrategy,
    MatchType,
    SearchQuery,
    SearchResult,
    merge_results,
)
from app.search.params import get_search_params
from app.search.providers import RankedHit, SearchFilters

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _hit(post_id: str, rank: float = 0.5, title: str | None = None) -> RankedHit:
    """Shortcut to build a RankedHit for tests."""
    title = title or f"Post {post_id}"
    return RankedHit(post_id, title, title.lower().replace(" ", "-"), None, rank)


def _sr(post_id: str, rank: float = 0.5, match_type: MatchType = MatchType.exact) -> SearchResult:
    """Shortcut to build a SearchResult for tests."""
    return SearchResult(id=post_id, title=f"Post {post_id}", slug=f"post-{post_id}", rank=rank, match_type=match_type)


def _make_mock_provider(hits: list[RankedHit] | None = None, side_effect=None):
    """Build a mock TextIndexProvider."""
    provider = AsyncMock()
    if side_effect is not None:
        provider.find = AsyncMock(side_effect=side_effect)
    else:
        provider.find = AsyncMock(return_value=hits if hits is not None else [])
    return provider


def _make_engine(lexical_provider, fuzzy_provider, **params) -> BlogSearchEngine:
    return BlogSearchEngine(
        lexical=LexicalSearchStrategy(lexical_provider),
        fuzzy=FuzzySearchStrategy(fuzzy_provider),
        params=get_search_params(**params),
    )


# ---------------------------------------------------------------------------
# 1. Empty query handling
# ---------------------------------------------------------------------------


class TestEmptyQuery:
    """Queries that normalize to nothing never touch the data store."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "\t\n", "!!!", "( ) | &"])
    async def test_returns_empty_without_provider_calls(self, query):
        lexical = _make_mock_provider([_hit("p1")])
        fuzzy = _make_mock_provider([_hit("p2")])
        engine = _make_engine(lexical, fuzzy)

        results = await engine.search(query, limit=20)

        assert results == []
        lexical.find.assert_not_awaited()
        fuzzy.find.assert_not_awaited()


# ---------------------------------------------------------------------------
# 2. Sufficiency short-circuit
# ---------------------------------------------------------------------------


class TestSufficiencyThreshold:
    """Fuzzy search runs only when lexical hits < min(limit, 5)."""

    @pytest.mark.asyncio
    async def test_five_lexical_hits_skip_fuzzy(self):
        lexical = _make_mock_provider([_hit(f"p{i}") for i in range(5)])
        fuzzy = _make_mock_provider([_hit("f1")])
        engine = _make_engine(lexical, fuzzy)

        results = await engine.search("revenue", limit=20)

        assert len(results) == 5
        assert all(r.match_type == MatchType.exact for r in results)
        fuzzy.find.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_small_limit_lowers_threshold(self):
        """With limit=3 the threshold is 3, not 5."""
        lexical = _make_mock_provider([_hit("p1"), _hit("p2"), _hit("p3")])
        fuzzy = _make_mock_provider([_hit("f1")])
        engine = _make_engine(lexical, fuzzy)

        results = await engine.search("revenue", limit=3)

        assert [r.id for r in results] == ["p1", "p2", "p3"]
        fuzzy.find.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_four_lexical_hits_run_fuzzy(self):
        lexical = _make_mock_provider([_hit(f"p{i}") for i in range(4)])
        fuzzy = _make_mock_provider([_hit("f1")])
        engine = _make_engine(lexical, fuzzy)

        results = await engine.search("revenue", limit=20)

        fuzzy.find.assert_awaited_once()
        assert [r.id for r in results] == ["p0", "p1", "p2", "p3", "f1"]

    @pytest.mark.asyncio
    async def test_configurable_cap(self):
        lexical = _make_mock_provider([_hit("p1"), _hit("p2")])
        fuzzy = _make_mock_provider([_hit("f1")])
        engine = _make_engine(lexical, fuzzy, sufficiency_cap=2)

        await engine.search("revenue", limit=20)

        fuzzy.find.assert_not_awaited()


# ---------------------------------------------------------------------------
# 3. Fuzzy call parameters and exclusion
# ---------------------------------------------------------------------------


class TestFuzzyGapFill:
    """The fuzzy phase fills only the remaining slots and excludes lexical ids."""

    @pytest.mark.asyncio
    async def test_remaining_limit_and_exclusion(self):
        lexical = _make_mock_provider([_hit("p1"), _hit("p2")])
        fuzzy = _make_mock_provider([_hit("f1")])
        engine = _make_engine(lexical, fuzzy)

        await engine.search("revenu", limit=20, offset=0)

        lexical.find.assert_awaited_once_with("revenu", SearchFilters(), limit=20, offset=0)
        fuzzy.find.assert_awaited_once_with(
            "revenu",
            SearchFilters(),
            limit=18,
            offset=0,
            exclude=frozenset({"p1", "p2"}),
        )

    @pytest.mark.asyncio
    async def test_raw_query_passed_to_providers(self):
        """Providers receive the query as typed, not the normalized form."""
        lexical = _make_mock_provider([])
        fuzzy = _make_mock_provider([])
        engine = _make_engine(lexical, fuzzy)

        await engine.search("revenue (ops)", limit=10)

        assert lexical.find.await_args.args[0] == "revenue (ops)"
        assert fuzzy.find.await_args.args[0] == "revenue (ops)"

    @pytest.mark.asyncio
    async def test_offset_forwarded_to_both_phases(self):
        lexical = _make_mock_provider([])
        fuzzy = _make_mock_provider([])
        engine = _make_engine(lexical, fuzzy)

        await engine.search("revenue", limit=10, offset=30)

        assert lexical.find.await_args.kwargs["offset"] == 30
        assert fuzzy.find.await_args.kwargs["offset"] == 30

    @pytest.mark.asyncio
    async def test_status_filter_forwarded(self):
        lexical = _make_mock_provider([])
        fuzzy = _make_mock_provider([])
        engine = _make_engine(lexical, fuzzy)

        await engine.search("revenue", status_filter=["published"])

        expected = SearchFilters(statuses=(PostStatus.PUBLISHED,))
        assert lexical.find.await_args.args[1] == expected
        assert fuzzy.find.await_args.args[1] == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["PUBLISHED", "published", PostStatus.PUBLISHED])
    async def test_single_status_treated_as_one_element(self, status):
        lexical = _make_mock_provider([])
        fuzzy = _make_mock_provider([])
        engine = _make_engine(lexical, fuzzy)

        await engine.search("revenue", status_filter=status)

        assert lexical.find.await_args.args[1] == SearchFilters(statuses=(PostStatus.PUBLISHED,))

    @pytest.mark.asyncio
    async def test_no_id_in_both_partitions(self):
        """Even a misbehaving fuzzy provider cannot duplicate a lexical id."""
        lexical = _make_mock_provider([_hit("p1"), _hit("p2")])
        fuzzy = _make_mock_provider([_hit("p2"), _hit("f1")])
        engine = _make_engine(lexical, fuzzy)

        results = await engine.search("revenue", limit=20)

        exact_ids = {r.id for r in results if r.match_type == MatchType.exact}
        fuzzy_ids = {r.id for r in results if r.match_type == MatchType.fuzzy}
        assert exact_ids.isdisjoint(fuzzy_ids)
        assert [r.id for r in results] == ["p1", "p2", "f1"]


# ---------------------------------------------------------------------------
# 4. Ordering and cap
# ---------------------------------------------------------------------------


class TestOrderingAndCap:
    @pytest.mark.asyncio
    async def test_exact_precede_fuzzy_regardless_of_rank(self):
        lexical = _make_mock_provider([_hit("p1", rank=0.01)])
        fuzzy = _make_mock_provider([_hit("f1", rank=0.99), _hit("f2", rank=0.9)])
        engine = _make_engine(lexical, fuzzy)

        results = await engine.search("revenue", limit=10)

        assert [r.match_type for r in results] == [MatchType.exact, MatchType.fuzzy, MatchType.fuzzy]
        assert [r.id for r in results] == ["p1", "f1", "f2"]

    @pytest.mark.asyncio
    async def test_result_count_never_exceeds_limit(self):
        lexical = _make_mock_provider([_hit("p1")])
        fuzzy = _make_mock_provider([_hit(f"f{i}") for i in range(10)])
        engine = _make_engine(lexical, fuzzy)

        results = await engine.search("revenue", limit=4)

        assert len(results) <= 4
        assert [r.id for r in results] == ["p1", "f0", "f1", "f2"]

    @pytest.mark.asyncio
    async def test_results_carry_post_fields(self):
        lexical = _make_mock_provider([RankedHit("p1", "Revenue Guide", "revenue-guide", "All about it", 0.7)])
        fuzzy = _make_mock_provider([])
        engine = _make_engine(lexical, fuzzy)

        (result,) = await engine.search("revenue", limit=10)

        assert result == SearchResult(
            id="p1",
            title="Revenue Guide",
            slug="revenue-guide",
            excerpt="All about it",
            rank=0.7,
            match_type=MatchType.exact,
        )


# ---------------------------------------------------------------------------
# 5. Error handling
# ---------------------------------------------------------------------------


class TestErrorHandling:
    """Fuzzy failures are absorbed; lexical failures propagate."""

    @pytest.mark.asyncio
    async def test_fuzzy_failure_returns_lexical_hits(self, caplog):
        lexical = _make_mock_provider([_hit("p1"), _hit("p2")])
        fuzzy = _make_mock_provider(side_effect=RuntimeError("trigram index unavailable"))
        engine = _make_engine(lexical, fuzzy)

        with caplog.at_level(logging.WARNING):
            results = await engine.search("revenue", limit=20)

        assert [r.id for r in results] == ["p1", "p2"]
        assert all(r.match_type == MatchType.exact for r in results)
        fuzzy.find.assert_awaited_once()
        assert "Fuzzy search failed" in caplog.text

    @pytest.mark.asyncio
    async def test_fuzzy_failure_with_no_lexical_hits(self):
        lexical = _make_mock_provider([])
        fuzzy = _make_mock_provider(side_effect=RuntimeError("boom"))
        engine = _make_engine(lexical, fuzzy)

        assert await engine.search("revenue", limit=20) == []

    @pytest.mark.asyncio
    async def test_lexical_failure_propagates(self):
        lexical = _make_mock_provider(side_effect=RuntimeError("database unavailable"))
        fuzzy = _make_mock_provider([_hit("f1")])
        engine = _make_engine(lexical, fuzzy)

        with pytest.raises(RuntimeError, match="database unavailable"):
            await engine.search("revenue", limit=20)
        fuzzy.find.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit, offset", [(0, 0), (-1, 0), (10, -1)])
    async def test_invalid_pagination_rejected(self, limit, offset):
        lexical = _make_mock_provider([])
        fuzzy = _make_mock_provider([])
        engine = _make_engine(lexical, fuzzy)

        with pytest.raises(ValidationError):
            await engine.search("revenue", limit=limit, offset=offset)
        lexical.find.assert_not_awaited()


# ---------------------------------------------------------------------------
# 6. Strategy and merger units
# ---------------------------------------------------------------------------


class TestFuzzySearchStrategy:
    @pytest.mark.asyncio
    async def test_zero_remaining_limit_skips_lookup(self):
        provider = _make_mock_provider([_hit("f1")])
        strategy = FuzzySearchStrategy(provider)

        assert await strategy.search("revenu", remaining_limit=0) == []
        provider.find.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tags_results_fuzzy(self):
        strategy = FuzzySearchStrategy(_make_mock_provider([_hit("f1", rank=0.4)]))

        results = await strategy.search("revenu", remaining_limit=5)

        assert results[0].match_type == MatchType.fuzzy
        assert results[0].rank == pytest.approx(0.4)


class TestMergeResults:
    def test_concatenates_in_order(self):
        merged = merge_results([_sr("a"), _sr("b")], [_sr("c", match_type=MatchType.fuzzy)], limit=10)
        assert [r.id for r in merged] == ["a", "b", "c"]

    def test_pass_through_without_fuzzy(self):
        lexical = [_sr("a", 0.1), _sr("b", 0.9)]
        assert merge_results(lexical, [], limit=10) == lexical

    def test_caps_at_limit(self):
        merged = merge_results([_sr("a")], [_sr(x, match_type=MatchType.fuzzy) for x in "bcd"], limit=2)
        assert [r.id for r in merged] == ["a", "b"]


class TestSearchQueryModel:
    def test_defaults(self):
        query = SearchQuery(text="revenue")
        assert query.limit == 20
        assert query.offset == 0
        assert query.status_filter is None

    def test_status_strings_normalized(self):
        query = SearchQuery(text="q", status_filter=["draft", "PUBLISHED"])
        assert query.status_filter == [PostStatus.DRAFT, PostStatus.PUBLISHED]

    def test_match_type_serializes_as_string(self):
        data = _sr("p1", match_type=MatchType.fuzzy).model_dump(mode="json")
        assert data["match_type"] == "fuzzy"
