"""
Tests for severity fusion and priority scoring
"""
import pytest

from civicpulse.services.priority_scoring import PriorityScoringService
from civicpulse.services.severity_fusion import fuse, round_half_up
from conftest import add_issue


class TestFusion:

    def test_weighted_blend(self):
        assert fuse(6, 8) == 8  # 6.4 + 1.2 = 7.6

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(7.5) == 8

    @pytest.mark.parametrize("missing", [None, 0])
    def test_missing_inputs_are_neutral(self, missing):
        assert fuse(missing, missing) == 5
        assert fuse(missing, 10) == fuse(5, 10)

    def test_monotonic(self):
        for image in range(1, 11):
            for text in range(1, 10):
                assert fuse(image, text + 1) >= fuse(image, text)
                if image < 10:
                    assert fuse(image + 1, text) >= fuse(image, text)

    def test_result_in_range(self):
        for image in range(0, 11):
            for text in range(0, 11):
                assert 1 <= fuse(image, text) <= 10

    def test_custom_weights(self):
        assert fuse(10, 0, text_weight=0.5, image_weight=0.5) == 8  # 5*0.5 + 10*0.5 = 7.5


class TestPriorityScoring:

    def test_location_impact(self):
        assert PriorityScoringService.get_location_impact("Leak near the city hospital") == 90
        assert PriorityScoringService.get_location_impact("Pothole on main road") == 75
        assert PriorityScoringService.get_location_impact("Garbage by the market") == 65
        assert PriorityScoringService.get_location_impact("Leak in my lane") == 40

    def test_frequency(self):
        assert PriorityScoringService.get_frequency_score(0) == 20
        assert PriorityScoringService.get_frequency_score(2) == 50
        assert PriorityScoringService.get_frequency_score(4) == 75
        assert PriorityScoringService.get_frequency_score(7) == 100

    def test_labels(self):
        assert PriorityScoringService.get_priority_label(70) == "High"
        assert PriorityScoringService.get_priority_label(69) == "Medium"
        assert PriorityScoringService.get_priority_label(45) == "Medium"
        assert PriorityScoringService.get_priority_label(44) == "Low"

    def test_worked_example(self):
        # 80*0.5 + 90*0.3 + 20*0.1 + 10*0.1 = 70, +10 boost
        result = PriorityScoringService().score(combined_severity=8, open_issue_count=0,
                                                text="Pipe burst next to school", ai_boost=10)
        assert result.final_score == 80
        assert result.label == "High"
        assert result.breakdown == {
            "severity": 80,
            "frequency": 20,
            "location_impact": 90,
            "time_pending": 10,
            "ai_adjustment": 10,
        }

    def test_score_capped_at_100(self):
        result = PriorityScoringService().score(10, 50, "hospital", ai_boost=15)
        assert result.final_score == 100

    def test_bounds(self):
        service = PriorityScoringService()
        for severity in range(1, 11):
            for count in (0, 3, 10):
                for boost in (0, 15):
                    assert 0 <= service.score(severity, count, "", boost).final_score <= 100

    def test_count_open_issues(self, db):
        add_issue(db, status="Pending")
        add_issue(db, status="In Progress")
        add_issue(db, status="Resolved")
        assert PriorityScoringService(db).count_open_issues() == 2
