"""Tests for the repository boundary."""

import pytest

from soupheatmap.repository import (
    InMemoryMatchRepository,
    MatchRepository,
    ProgressReport,
    RepositoryError,
)


@pytest.fixture
def repository(make_match, make_player, make_event):
    return InMemoryMatchRepository(
        {
            "matches": [
                make_match("m1", [make_player("a")], [make_event("a", "b")]),
                make_match("m2", [make_player("b")], [], map_name="Bind"),
                make_match("m3", [make_player("c")], [make_event("c", "a")]),
            ]
        }
    )


class TestInMemoryRepository:
    """Test listing, loading and progress reporting."""

    def test_satisfies_protocol(self, repository):
        assert isinstance(repository, MatchRepository)

    def test_list_matches(self, repository):
        summaries = repository.list_matches("matches")
        assert [s.match_id for s in summaries] == ["m1", "m2", "m3"]
        assert summaries[1].map == "Bind"

    def test_get_match_detail(self, repository):
        detail = repository.get_match_detail("matches", "m3")
        assert detail.match_id == "m3"
        assert len(detail.kill_events) == 1

    def test_missing_match(self, repository):
        with pytest.raises(RepositoryError) as exc_info:
            repository.get_match_detail("matches", "nope")
        assert exc_info.value.match_id == "nope"

    def test_missing_folder(self, repository):
        with pytest.raises(RepositoryError):
            repository.list_matches("elsewhere")

    def test_batch_load_reports_progress(self, repository):
        reports = []
        details = repository.get_match_details("matches", ["m3", "m1"], on_progress=reports.append)

        assert [d.match_id for d in details] == ["m3", "m1"]
        assert reports == [ProgressReport(1, 2), ProgressReport(2, 2)]
        assert reports[-1].is_complete

    def test_batch_load_fails_as_a_whole(self, repository):
        with pytest.raises(RepositoryError):
            repository.get_match_details("matches", ["m1", "missing"])


class TestProgressReport:
    """Test progress values."""

    def test_percentage(self):
        assert ProgressReport(processed=1, total=4).percentage == 25.0

    def test_indeterminate(self):
        report = ProgressReport(indeterminate=True)
        assert report.percentage is None
        assert not report.is_complete

    def test_zero_total(self):
        assert ProgressReport(processed=0, total=0).percentage is None
