"""
Tests for annotation reconciliation.
"""

import pytest

from boxdrop.models import AnnotationRecord, RoiRect
from boxdrop.reconcile import (
    build_roi_record,
    collapse_placeholders,
    reconcile,
    roi_description,
    supersedes,
)


def placeholder(name):
    return AnnotationRecord(name=name, points=[[(0, 0), (10, 0), (10, 10), (0, 10)]])


def labelled(name, text="40"):
    return AnnotationRecord(
        name=name,
        points=[[(0, 0), (5, 0), (5, 5), (0, 5)]],
        description=roi_description(text),
    )


def other(name, description="tumour margin"):
    return AnnotationRecord(name=name, description=description)


def names_and_descriptions(records):
    return [(r.name, r.description) for r in records]


class TestSupersedes:
    """Tests for the placeholder/labelled pair rule."""

    def test_pair(self):
        assert supersedes(placeholder("R1"), labelled("R1"))

    def test_name_mismatch(self):
        assert not supersedes(placeholder("R1"), labelled("R2"))

    def test_first_not_placeholder(self):
        assert not supersedes(labelled("R1"), labelled("R1"))

    def test_second_not_labelled(self):
        assert not supersedes(placeholder("R1"), other("R1"))
        assert not supersedes(placeholder("R1"), placeholder("R1"))

    def test_marker_anywhere_in_description(self):
        later = other("R1", description="edited - Cellularity: 30")
        assert supersedes(placeholder("R1"), later)


class TestCollapsePlaceholders:
    """Tests for collapse_placeholders function."""

    def test_empty(self):
        assert collapse_placeholders([]) == ([], 0)

    def test_single_placeholder_kept(self):
        records = [placeholder("R1")]
        assert collapse_placeholders(records) == (records, 0)

    def test_trailing_placeholder_kept(self):
        records = [labelled("R1"), placeholder("R2")]
        kept, dropped = collapse_placeholders(records)
        assert kept == records
        assert dropped == 0

    def test_collapses_adjacent_pair(self):
        records = [other("A"), placeholder("R1"), labelled("R1"), other("B")]
        kept, dropped = collapse_placeholders(records)

        assert dropped == 1
        assert kept == [records[0], records[2], records[3]]

    def test_non_adjacent_placeholder_kept(self):
        records = [placeholder("R1"), other("A"), labelled("R1")]
        kept, dropped = collapse_placeholders(records)

        assert dropped == 0
        assert kept == records

    def test_multiple_pairs(self):
        records = [
            placeholder("R1"), labelled("R1", "10"),
            placeholder("R2"), labelled("R2", "20"),
        ]
        kept, dropped = collapse_placeholders(records)

        assert dropped == 2
        assert names_and_descriptions(kept) == [
            ("R1", "Cellularity: 10"), ("R2", "Cellularity: 20")
        ]

    def test_repeated_placeholders_only_last_collapsed(self):
        """Only the placeholder directly before the labelled record is dropped."""
        first, second, label = placeholder("R"), placeholder("R"), labelled("R")
        kept, dropped = collapse_placeholders([first, second, label])

        assert dropped == 1
        assert kept == [first, label]

    def test_order_preserved(self):
        records = [
            other("A"), placeholder("R1"), labelled("R1"), other("B"),
            placeholder("X"), other("C"), placeholder("R2"), labelled("R2"),
        ]
        kept, dropped = collapse_placeholders(records)

        expected = [r for i, r in enumerate(records) if i not in (1, 6)]
        assert kept == expected
        assert dropped == 2


class TestReconcile:
    """Tests for reconcile function."""

    def test_empty_store_without_roi(self):
        result = reconcile([], None, "40")

        assert result.records == []
        assert result.appended is None
        assert result.dropped == 0
        assert result.seen_count == 0

    def test_empty_store_with_roi_appends_nothing(self):
        result = reconcile([], RoiRect(0, 0, 10), "40")

        assert result.records == []
        assert result.appended is None

    def test_appends_labelled_record_and_collapses_placeholder(self):
        drawn = AnnotationRecord(
            name="Rectangle 3",
            style={"pen": "#00ff00", "width": 2},
            geometry="polygon",
            points=[[(100, 100), (300, 100), (300, 300), (100, 300)]],
        )
        records = [labelled("Rectangle 1"), drawn]
        roi = RoiRect(150, 150, 100)

        result = reconcile(records, roi, "cellularity(%)")

        assert result.seen_count == 3
        assert result.dropped == 1
        assert len(result.records) == 2
        assert result.records[0] is records[0]
        new = result.records[-1]
        assert new is result.appended
        assert new.name == "Rectangle 3"
        assert new.style == {"pen": "#00ff00", "width": 2}
        assert new.geometry == "polygon"
        assert new.description == "Cellularity: cellularity(%)"
        assert new.points == [[(150.0, 150.0), (250.0, 150.0), (250.0, 250.0), (150.0, 250.0)]]

    def test_inherits_from_labelled_last_record(self):
        """A non-placeholder last record is kept alongside the new one."""
        records = [labelled("R1", "10")]
        result = reconcile(records, RoiRect(0, 0, 8), "20")

        assert result.dropped == 0
        assert names_and_descriptions(result.records) == [
            ("R1", "Cellularity: 10"), ("R1", "Cellularity: 20")
        ]

    def test_without_roi_still_collapses(self):
        records = [placeholder("R1"), labelled("R1")]
        result = reconcile(records, None, "ignored")

        assert result.appended is None
        assert result.records == [records[1]]
        assert result.seen_count == 2

    def test_input_not_mutated(self):
        records = [placeholder("R1")]
        reconcile(records, RoiRect(0, 0, 4), "x")
        assert len(records) == 1

    def test_style_copied(self):
        template = AnnotationRecord(name="R", style={"pen": "red"})
        record = build_roi_record(template, RoiRect(0, 0, 4), "x")
        record.style["pen"] = "blue"
        assert template.style == {"pen": "red"}
