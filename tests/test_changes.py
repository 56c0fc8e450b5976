"""
Tests for change detection.
"""

import pytest

from boxdrop.changes import ChangeFlags, ParameterTracker, detect_changes
from boxdrop.models import PipelineParameters


class TestDetectChanges:
    """Tests for detect_changes function."""

    def test_nothing_changed_with_handle(self):
        assert detect_changes(ChangeFlags(), has_export_handle=True) is False

    def test_missing_handle_forces_change(self):
        assert detect_changes(ChangeFlags(), has_export_handle=False) is True

    @pytest.mark.parametrize("field", ["description", "region", "export_requested", "output_path"])
    def test_any_single_flag(self, field):
        flags = ChangeFlags(**{field: True})
        assert flags.any()
        assert detect_changes(flags, has_export_handle=True) is True

    def test_everything(self):
        flags = ChangeFlags.everything()
        assert flags.description and flags.region
        assert flags.export_requested and flags.output_path


class TestParameterTracker:
    """Tests for ParameterTracker."""

    def params(self, **overrides):
        values = dict(
            size=100,
            description="40",
            region=[(0, 0), (10, 10)],
            export_requested=False,
            output_path="",
        )
        values.update(overrides)
        return PipelineParameters(**values)

    def test_first_call_reports_everything(self):
        tracker = ParameterTracker()
        assert tracker.flags_for(self.params()) == ChangeFlags.everything()

    def test_unchanged_after_commit(self):
        tracker = ParameterTracker()
        tracker.commit(self.params())
        assert not tracker.flags_for(self.params()).any()

    def test_each_field(self):
        tracker = ParameterTracker()
        tracker.commit(self.params())

        assert tracker.flags_for(self.params(description="50")) == ChangeFlags(description=True)
        assert tracker.flags_for(self.params(region=[(1, 0), (10, 10)])) == ChangeFlags(region=True)
        assert tracker.flags_for(self.params(region=None)) == ChangeFlags(region=True)
        assert tracker.flags_for(self.params(export_requested=True)) == ChangeFlags(export_requested=True)
        assert tracker.flags_for(self.params(output_path="a.png")) == ChangeFlags(output_path=True)

    def test_size_not_tracked(self):
        tracker = ParameterTracker()
        tracker.commit(self.params())
        assert not tracker.flags_for(self.params(size=200)).any()

    def test_region_compared_by_value(self):
        tracker = ParameterTracker()
        tracker.commit(self.params(region=[[0, 0], [10, 10]]))
        assert not tracker.flags_for(self.params(region=[(0.0, 0.0), (10.0, 10.0)])).any()

    def test_snapshot_not_affected_by_later_mutation(self):
        tracker = ParameterTracker()
        params = self.params()
        tracker.commit(params)
        params.region.append((20, 20))
        assert tracker.flags_for(params).region

    def test_reset(self):
        tracker = ParameterTracker()
        tracker.commit(self.params())
        tracker.reset()
        assert tracker.flags_for(self.params()) == ChangeFlags.everything()
