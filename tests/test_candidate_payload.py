"""Tests for save-candidate payload normalization."""

from datetime import date, datetime, timezone

import pytest

from recruitcrm.services.candidates import (
    CandidatePayloadError,
    build_candidate,
    prepare_candidate_row,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class TestPrepareCandidateRow:
    @pytest.mark.parametrize("value,expected", [
        ("yes", True),
        ("no", False),
        ("", False),
        (None, False),
        ("Yes", False),
        (True, False),
    ])
    def test_relocation_flag(self, value, expected):
        row = prepare_candidate_row({"willing_to_relocate": value}, NOW)
        assert row["willing_to_relocate"] is expected

    def test_missing_relocation_flag(self):
        assert prepare_candidate_row({}, NOW)["willing_to_relocate"] is False

    def test_date_added_defaults_to_now(self):
        assert prepare_candidate_row({}, NOW)["user_date_added"] == NOW.isoformat()

    def test_date_added_kept_when_given(self):
        row = prepare_candidate_row({"user_date_added": "2024-01-01T08:00:00"}, NOW)
        assert row["user_date_added"] == "2024-01-01T08:00:00"

    def test_empty_date_available_becomes_none(self):
        assert prepare_candidate_row({"date_available": ""}, NOW)["date_available"] is None

    def test_cv_object_is_dropped(self):
        row = prepare_candidate_row({"first_name": "Ana", "cv": {"name": "cv.pdf"}}, NOW)
        assert "cv" not in row
        assert row["first_name"] == "Ana"


class TestBuildCandidate:
    def test_builds_model(self):
        row = prepare_candidate_row({
            "first_name": "Ana",
            "last_name": "Lopez",
            "willing_to_relocate": "yes",
            "date_available": "2024-09-01",
            "cv_url": "1700000000000_cv.pdf",
        }, NOW)

        candidate = build_candidate(row)

        assert candidate.first_name == "Ana"
        assert candidate.willing_to_relocate is True
        assert candidate.date_available == date(2024, 9, 1)
        assert candidate.user_date_added == NOW
        assert candidate.cv_url == "1700000000000_cv.pdf"

    def test_unknown_column(self):
        with pytest.raises(CandidatePayloadError, match="Could not find the 'favourite_color' column"):
            build_candidate(prepare_candidate_row({"favourite_color": "blue"}, NOW))

    def test_invalid_date(self):
        with pytest.raises(CandidatePayloadError):
            build_candidate(prepare_candidate_row({"date_available": "next week"}, NOW))

    def test_server_columns_are_ignored(self):
        candidate = build_candidate(prepare_candidate_row({"id": 99, "first_name": "Ana"}, NOW))
        assert candidate.id is None
