"""
Tests for group data-quality checks and their audit logging.
"""

from expense_groups.audit.logger import QualityAuditLogger
from expense_groups.installments.builder import build_groups
from expense_groups.models.expense import GroupIndex
from expense_groups.models.quality import IssueSeverity, IssueType
from expense_groups.orchestrator import create_tracker
from expense_groups.validation.quality import GroupQualityChecker


def _types(issues):
    return {issue.issue_type for issue in issues}


class StubLogger:
    """Captures structlog-style calls."""

    def __init__(self):
        self.calls = []

    def _record(self, level):
        def log(event, **kwargs):
            self.calls.append((level, event, kwargs))
        return log

    def __getattr__(self, level):
        return self._record(level)


class TestGroupQualityChecker:
    """Tests for GroupQualityChecker."""

    def test_complete_group_is_clean(self, tv_records):
        checker = GroupQualityChecker()
        report = checker.check_index(build_groups(tv_records))
        assert report.group_count == 1
        assert report.issues == []
        assert checker.get_user_friendly_summary(report) == (
            "All 1 installment purchases look consistent."
        )

    def test_partial_group(self, expense):
        records = [
            expense("TV (1/3)", "2026-01-10", id="1"),
            expense("TV (3/3)", "2026-03-10", id="3"),
        ]
        issues = GroupQualityChecker().check_group(build_groups(records).group_for("1"))
        assert _types(issues) == {IssueType.PARTIAL_GROUP}
        assert issues[0].severity == IssueSeverity.INFO
        assert "[2]" in issues[0].message

    def test_partial_groups_can_be_muted(self, expense):
        records = [expense("TV (1/3)", "2026-01-10", id="1")]
        checker = GroupQualityChecker(report_partial=False)
        assert checker.check_group(build_groups(records).group_for("1")) == []

    def test_explicit_group_problems(self, expense):
        records = [
            expense("Phone (1/2)", "2026-01-03", id="p1", group_id="g"),
            expense("Phone (1/3)", "2026-01-03", id="p2", group_id="g", currency="USD"),
            expense("Phone (2/2)", "2026-02-03", id="p3", group_id="g"),
        ]
        issues = GroupQualityChecker().check_group(build_groups(records).get("group:g"))

        assert _types(issues) == {
            IssueType.DUPLICATE_INDEX,
            IssueType.OVERSIZED_GROUP,
            IssueType.TOTAL_MISMATCH,
            IssueType.CURRENCY_MISMATCH,
        }
        duplicate = next(i for i in issues if i.issue_type == IssueType.DUPLICATE_INDEX)
        assert duplicate.record_ids == ["p1", "p2"]

    def test_index_out_of_range(self, expense):
        records = [expense("TV (4/3)", "2026-04-10", id="4")]
        issues = GroupQualityChecker().check_group(build_groups(records).group_for("4"))
        assert IssueType.INDEX_OUT_OF_RANGE in _types(issues)

    def test_missing_start_key(self, expense):
        records = [expense("Phone (1/1)", id="p1", group_id="g")]
        issues = GroupQualityChecker().check_group(build_groups(records).get("group:g"))
        assert _types(issues) == {IssueType.MISSING_START_KEY}

    def test_summary_lists_findings(self, expense):
        records = [expense("TV (1/3)", "2026-01-10", id="1")]
        checker = GroupQualityChecker()
        summary = checker.get_user_friendly_summary(checker.check_index(build_groups(records)))
        assert summary.startswith("1 finding(s) across 1 purchases:")
        assert "[info]" in summary

    def test_empty_index(self):
        report = GroupQualityChecker().check_index(GroupIndex())
        assert report.group_count == 0
        assert report.issue_count == 0


class TestQualityAuditLogger:
    def test_report_is_logged_by_severity(self, expense):
        records = [
            expense("TV (1/3)", "2026-01-10", id="1"),
            expense("Phone (1/2)", "2026-01-03", id="p1", group_id="g"),
            expense("Phone (1/2)", "2026-01-03", id="p2", group_id="g"),
        ]
        report = GroupQualityChecker().check_index(build_groups(records))
        stub = StubLogger()

        logged = QualityAuditLogger(stub).log_report(report)

        assert logged == report.issue_count
        levels = [level for level, event, _ in stub.calls if event == "data_quality_issue"]
        assert "warning" in levels
        assert "debug" in levels
        level, event, fields = stub.calls[-1]
        assert (level, event) == ("info", "data_quality_checked")
        assert fields["group_count"] == 2


class TestImplausibleCounts:
    def test_huge_advertised_count_is_summarised(self, expense):
        """A partial group with an enormous N reports a count, not a list."""
        records = [expense("X (1/999999999)", "2026-01-10", id="1")]
        issues = GroupQualityChecker().check_group(build_groups(records).group_for("1"))

        assert _types(issues) == {IssueType.PARTIAL_GROUP}
        assert issues[0].message == "1 of 999999999 installments present, missing 999999998 positions"

    def test_tracker_with_quality_logging_survives_huge_count(self, expense):
        tracker = create_tracker()
        tracker.load([expense("X (1/999999999)", "2026-01-10", id="1")])
        assert len(tracker.list_groups()) == 1
        assert [item.id for item in tracker.installments_for(tracker.records[0])] == ["1"]
