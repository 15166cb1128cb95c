"""Tests for merging fetched pages into a snapshot."""

import random
from datetime import datetime, timezone

import pytest
from hypothesis import given, settings, strategies as st

from conftest import build_pages, build_row
from src.models.market_data import Horizon
from src.services.snapshot_merger import merge_pages, parse_row


class TestParseRow:
    """Test suite for parse_row."""

    def test_parses_source_and_derived_horizons(self):
        row = build_row(
            3,
            current_price=110.0,
            price_change_percentage_1h_in_currency=1.25,
            sparkline_in_7d={"price": [100.0, 100.0, 100.0, 100.0, 100.0]},
        )

        asset = parse_row(row, sample_interval_minutes=60)

        assert asset.id == "coin-3"
        assert asset.rank == 3
        assert asset.price == 110.0
        assert asset.change(Horizon.H1) == 1.25
        assert asset.change(Horizon.H24) == 1.0
        assert asset.change(Horizon.M15) == 10.0
        assert asset.change(Horizon.H4) == 10.0
        assert len(asset.price_series) == 5

    def test_null_changes_stay_unavailable(self):
        row = build_row(1, price_change_percentage_7d_in_currency=None, sparkline_in_7d=None)

        asset = parse_row(row, sample_interval_minutes=60)

        assert asset.change(Horizon.D7) is None
        assert asset.change(Horizon.M15) is None
        assert asset.change(Horizon.H4) is None
        assert asset.price_series == ()

    def test_missing_rank_or_id_is_rejected(self):
        assert parse_row(build_row(1, market_cap_rank=None), 60) is None
        assert parse_row(build_row(1, market_cap_rank=0), 60) is None
        assert parse_row(build_row(1, market_cap_rank=2.5), 60) is None
        assert parse_row(build_row(1, id=None), 60) is None

    @pytest.mark.parametrize("rank", [float("inf"), float("nan"), "1e400", "NaN"])
    def test_non_finite_rank_is_rejected(self, rank):
        assert parse_row(build_row(1, market_cap_rank=rank), 60) is None

    def test_non_finite_numbers_are_unusable(self):
        row = build_row(
            1,
            current_price=float("nan"),
            market_cap=float("inf"),
            price_change_percentage_1h_in_currency=float("-inf"),
        )

        asset = parse_row(row, 60)

        assert asset.price == 0.0
        assert asset.market_cap == 0.0
        assert asset.change(Horizon.H1) is None

    def test_null_sample_keeps_later_positions(self):
        """A missing sample must not shift the samples that follow it."""
        row = build_row(
            1,
            current_price=100.0,
            sparkline_in_7d={"price": [10.0, 50.0, 60.0, 70.0, 80.0, None]},
        )

        asset = parse_row(row, sample_interval_minutes=60)

        assert asset.price_series == (10.0, 50.0, 60.0, 70.0, 80.0, None)
        assert asset.change(Horizon.H4) == 100.0
        assert asset.change(Horizon.M15) is None

    def test_null_numbers_default_to_zero(self):
        row = build_row(1, current_price=None, market_cap=None, total_volume=None)

        asset = parse_row(row, 60)

        assert asset.price == 0.0
        assert asset.market_cap == 0.0
        assert asset.volume == 0.0
        assert asset.change(Horizon.M15) is None


class TestMergePages:
    """Test suite for merge_pages."""

    def test_merges_two_pages_in_rank_order(self, market_pages):
        snapshot = merge_pages(market_pages, sample_interval_minutes=60)

        assert len(snapshot) == 500
        assert [asset.rank for asset in snapshot.assets] == list(range(1, 501))
        assert snapshot.captured_at.tzinfo is not None

    def test_uses_given_capture_time(self, market_pages):
        captured_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert merge_pages(market_pages, 60, captured_at=captured_at).captured_at == captured_at

    def test_duplicate_id_keeps_first_occurrence(self):
        first = build_row(1, current_price=1.0)
        duplicate = build_row(1, current_price=2.0)

        snapshot = merge_pages([[first, build_row(2)], [duplicate]], 60)

        assert len(snapshot) == 2
        assert snapshot.get("coin-1").price == 1.0

    def test_infinite_rank_row_is_excluded_not_fatal(self):
        pages = [[build_row(1), build_row(2, market_cap_rank=float("inf"))], [build_row(3)]]

        snapshot = merge_pages(pages, 60)

        assert [asset.id for asset in snapshot.assets] == ["coin-1", "coin-3"]

    def test_rows_without_rank_are_excluded(self):
        pages = [[build_row(1), build_row(2, market_cap_rank=None)], [build_row(3)]]

        snapshot = merge_pages(pages, 60)

        assert [asset.id for asset in snapshot.assets] == ["coin-1", "coin-3"]

    def test_unsorted_pages_are_ordered_by_rank(self):
        pages = [[build_row(4), build_row(2)], [build_row(3), build_row(1)]]

        snapshot = merge_pages(pages, 60)

        assert [asset.rank for asset in snapshot.assets] == [1, 2, 3, 4]

    def test_empty_pages_give_empty_snapshot(self):
        assert len(merge_pages([[], []], 60)) == 0

    @given(seed=st.integers(min_value=0, max_value=10_000), total=st.integers(min_value=1, max_value=60))
    @settings(max_examples=30)
    def test_merge_is_independent_of_page_order(self, seed, total):
        """
        For any pair of disjoint pages, merging [A, B] and [B, A] SHALL yield
        the same rank-ordered content.
        """
        rows = [row for page in build_pages(total, page_size=total) for row in page]
        random.Random(seed).shuffle(rows)
        cut = len(rows) // 2
        page_a, page_b = rows[:cut], rows[cut:]
        captured_at = datetime(2024, 1, 1, tzinfo=timezone.utc)

        forward = merge_pages([page_a, page_b], 60, captured_at=captured_at)
        backward = merge_pages([page_b, page_a], 60, captured_at=captured_at)

        assert forward == backward
        assert [asset.rank for asset in forward.assets] == list(range(1, total + 1))
