"""
Unit tests for the hierarchy builder, sequence detector and force aggregator.
"""

import pytest

from mtf_confluence.signal_generation.components import (
    HierarchyBuilder, SequenceDetector, ForceAggregator,
)
from mtf_confluence.signal_generation.core import ForceWinner, SignalType


@pytest.fixture
def builder(config_dict):
    return HierarchyBuilder(config_dict["hierarchy"])


@pytest.fixture
def sequence_detector(config_dict, builder):
    return SequenceDetector(config_dict["sequence_detector"], builder.canonical_periods)


@pytest.fixture
def force_aggregator():
    return ForceAggregator({})


class TestHierarchyBuilder:
    """Test the HierarchyBuilder component."""

    def test_canonical_order_and_weights(self, builder, make_analysis):
        analyses = [
            make_analysis("5m", SignalType.BUY),
            make_analysis("24h", SignalType.SELL),
            make_analysis("1h", SignalType.HOLD),
        ]

        hierarchy = builder.build(analyses)

        assert [e.period for e in hierarchy] == ["24h", "1h", "5m"]
        assert [e.weight for e in hierarchy] == [0.35, 0.20, 0.04]
        assert hierarchy[0].signal == SignalType.SELL

    def test_aliases_are_normalized(self, builder, make_analysis):
        assert builder.normalize_period("H4") == "4h"
        assert builder.normalize_period("D1") == "24h"
        assert builder.normalize_period("1H") == "1h"
        assert builder.weight_for("M15") == 0.06

        hierarchy = builder.build([make_analysis("H4", SignalType.BUY)])
        assert hierarchy[0].period == "4h"

    def test_unknown_periods_are_excluded(self, builder, make_analysis):
        hierarchy = builder.build([make_analysis("2h", SignalType.BUY), make_analysis("1h", SignalType.BUY)])

        assert [e.period for e in hierarchy] == ["1h"]
        assert builder.weight_for("2h") == 0.0

    def test_later_duplicate_wins(self, builder, make_analysis):
        hierarchy = builder.build([make_analysis("1h", SignalType.BUY), make_analysis("1h", SignalType.SELL)])

        assert len(hierarchy) == 1
        assert hierarchy[0].signal == SignalType.SELL

    def test_dominant_period(self, make_entry):
        entries = [
            make_entry("24h", SignalType.BUY, trend_strength=30.0),
            make_entry("4h", SignalType.SELL, trend_strength=45.0),
            make_entry("1h", SignalType.HOLD, trend_strength=45.0),
        ]

        assert HierarchyBuilder.dominant_period(entries) == "4h"
        assert HierarchyBuilder.dominant_period([]) is None


class TestSequenceDetector:
    """Test the SequenceDetector component."""

    def test_three_period_sequence(self, sequence_detector, make_entry):
        hierarchy = [
            make_entry("24h", SignalType.BUY, strength=40.0),
            make_entry("4h", SignalType.BUY, strength=50.0),
            make_entry("1h", SignalType.BUY, strength=60.0),
            make_entry("30m", SignalType.SELL),
        ]

        sequences = sequence_detector.detect(hierarchy)

        assert len(sequences) == 1
        assert sequences[0].periods == ("24h", "4h", "1h")
        assert sequences[0].signal == SignalType.BUY
        assert sequences[0].strength == 150.0

    def test_missing_period_breaks_window(self, sequence_detector, make_entry):
        hierarchy = [
            make_entry("24h", SignalType.SELL),
            make_entry("4h", SignalType.SELL),
            make_entry("30m", SignalType.SELL),
            make_entry("15m", SignalType.SELL),
            make_entry("5m", SignalType.SELL),
        ]

        sequences = sequence_detector.detect(hierarchy)

        assert [s.periods for s in sequences] == [("30m", "15m", "5m")]

    def test_hold_never_forms_a_sequence(self, sequence_detector, make_entry):
        hierarchy = [make_entry(p, SignalType.HOLD) for p in ("24h", "4h", "1h", "30m")]
        assert sequence_detector.detect(hierarchy) == []

    def test_full_alignment_sorted_by_strength(self, sequence_detector, make_entry):
        periods = ["24h", "4h", "1h", "30m", "15m", "5m"]
        hierarchy = [make_entry(p, SignalType.BUY, strength=10.0 * (i + 1)) for i, p in enumerate(periods)]

        sequences = sequence_detector.detect(hierarchy)

        # 4 windows of three, 3 of four and 2 of five
        assert len(sequences) == 9
        assert sequences[0].periods == ("4h", "1h", "30m", "15m", "5m")
        assert sequences[0].strength == 200.0
        strengths = [s.strength for s in sequences]
        assert strengths == sorted(strengths, reverse=True)


class TestForceAggregator:
    """Test the ForceAggregator component."""

    def test_all_hold_is_tie(self, force_aggregator, make_entry):
        force = force_aggregator.aggregate([make_entry(p, SignalType.HOLD) for p in ("24h", "4h")])

        assert force.winner == ForceWinner.TIE
        assert force.buy_force == 0.0
        assert force.sell_force == 0.0

    def test_empty_hierarchy_is_tie(self, force_aggregator):
        assert force_aggregator.aggregate([]).winner == ForceWinner.TIE

    def test_all_buy_is_full_force(self, force_aggregator, make_entry):
        periods = ["24h", "4h", "1h", "30m", "15m", "5m"]
        hierarchy = [make_entry(p, SignalType.BUY, strength=10.0 * (i + 1)) for i, p in enumerate(periods)]

        force = force_aggregator.aggregate(hierarchy)

        assert force.buy_force == 100.0
        assert force.sell_force == 0.0
        assert force.winner == ForceWinner.BUY
        assert force.margin == 100.0

    def test_mixed_forces(self, force_aggregator, make_entry):
        hierarchy = [
            make_entry("24h", SignalType.BUY, strength=80.0),
            make_entry("4h", SignalType.SELL, strength=40.0),
            make_entry("1h", SignalType.HOLD, strength=90.0),
        ]

        force = force_aggregator.aggregate(hierarchy)

        assert force.buy_force == 73.7
        assert force.sell_force == 26.3
        assert force.winner == ForceWinner.BUY
        assert force.margin == pytest.approx(47.4)
