"""
Group Data-Quality Checks

DESIGN DECISION: The grouping engine absorbs bad data instead of rejecting
it. This checker makes that bad data visible. It runs over a built index
and reports findings; it never changes a group and never raises.

Checks per group:
- duplicate_index      two members claim the same installment number
- oversized_group      more members than the advertised N
- partial_group        fewer members than N (normal while a purchase runs)
- total_mismatch       members disagree on N (explicit groups only)
- currency_mismatch    members disagree on currency (explicit groups only)
- index_out_of_range   a member claims i > N
- missing_start_key    the group has no derivable start day

Heuristic groups cannot show total or currency mismatches: both are part of
their natural key.
"""

from collections import Counter
from typing import Optional

from expense_groups.models.expense import (
    DEFAULT_CURRENCY,
    GroupIndex,
    InstallmentGroup,
)
from expense_groups.models.quality import (
    DataQualityIssue,
    DataQualityReport,
    IssueSeverity,
    IssueType,
)

# N comes from free text; larger groups get a count instead of a list.
MAX_LISTED_POSITIONS = 120


class GroupQualityChecker:
    """
    Inspects installment groups for data-quality signals.

    Partial groups are reported at info level unless ``report_partial``
    is False, in which case they are not reported at all.
    """

    def __init__(
        self,
        base_currency: str = DEFAULT_CURRENCY,
        report_partial: bool = True,
    ):
        self._base_currency = base_currency
        self._report_partial = report_partial

    def _ids(self, group: InstallmentGroup, index: Optional[int] = None) -> list[str]:
        return [
            item.id
            for item in group.items
            if item.id and (index is None or item.installment_index == index)
        ]

    def _describe_missing(self, group: InstallmentGroup) -> str:
        """Missing positions, listed only for plausibly sized purchases."""
        total = group.total_count or 0
        present = {index for index in group.indices if 1 <= index <= total}
        if total > MAX_LISTED_POSITIONS:
            return f"{total - len(present)} positions"
        return str([index for index in range(1, total + 1) if index not in present])

    def check_group(self, group: InstallmentGroup) -> list[DataQualityIssue]:
        """Return every finding for one group."""
        issues = []

        # Duplicate installment numbers
        counts = Counter(group.indices)
        for index, count in sorted(counts.items()):
            if count > 1:
                issues.append(DataQualityIssue(
                    group_key=group.key,
                    issue_type=IssueType.DUPLICATE_INDEX,
                    message=f"Installment {index} appears {count} times",
                    severity=IssueSeverity.WARNING,
                    record_ids=self._ids(group, index),
                ))

        # Size versus advertised count
        if group.total_count is not None:
            if group.member_count > group.total_count:
                issues.append(DataQualityIssue(
                    group_key=group.key,
                    issue_type=IssueType.OVERSIZED_GROUP,
                    message=(
                        f"Group has {group.member_count} installments "
                        f"but advertises {group.total_count}"
                    ),
                    severity=IssueSeverity.WARNING,
                    record_ids=self._ids(group),
                ))
            elif group.is_partial and self._report_partial:
                issues.append(DataQualityIssue(
                    group_key=group.key,
                    issue_type=IssueType.PARTIAL_GROUP,
                    message=(
                        f"{group.member_count} of {group.total_count} installments "
                        f"present, missing {self._describe_missing(group)}"
                    ),
                    severity=IssueSeverity.INFO,
                ))

        # Out-of-range positions
        out_of_range = [
            item for item in group.items
            if item.installment_index > item.installment_total
        ]
        if out_of_range:
            issues.append(DataQualityIssue(
                group_key=group.key,
                issue_type=IssueType.INDEX_OUT_OF_RANGE,
                message="Installment number exceeds installment count",
                severity=IssueSeverity.WARNING,
                record_ids=[item.id for item in out_of_range if item.id],
            ))

        # Member agreement (only possible to break on explicit groups)
        totals = {item.installment_total for item in group.items}
        if len(totals) > 1:
            issues.append(DataQualityIssue(
                group_key=group.key,
                issue_type=IssueType.TOTAL_MISMATCH,
                message=f"Members disagree on installment count: {sorted(totals)}",
                severity=IssueSeverity.WARNING,
                record_ids=self._ids(group),
            ))

        currencies = {item.effective_currency(self._base_currency) for item in group.items}
        if len(currencies) > 1:
            issues.append(DataQualityIssue(
                group_key=group.key,
                issue_type=IssueType.CURRENCY_MISMATCH,
                message=f"Members use several currencies: {sorted(currencies)}",
                severity=IssueSeverity.WARNING,
                record_ids=self._ids(group),
            ))

        if group.start_key is None:
            issues.append(DataQualityIssue(
                group_key=group.key,
                issue_type=IssueType.MISSING_START_KEY,
                message="No member supplied a date to derive the purchase start",
                severity=IssueSeverity.INFO,
            ))

        return issues

    def check_index(self, index: GroupIndex) -> DataQualityReport:
        """Check every group of an index."""
        issues = []
        for group in index.list_groups():
            issues.extend(self.check_group(group))

        return DataQualityReport(
            group_count=len(index),
            issues=issues,
        )

    def get_user_friendly_summary(self, report: DataQualityReport) -> str:
        """Short text summary for a settings or diagnostics screen."""
        if not report.issues:
            return f"All {report.group_count} installment purchases look consistent."

        lines = [
            f"{report.issue_count} finding(s) across {report.group_count} purchases:"
        ]
        for issue in report.issues:
            lines.append(f"   • [{issue.severity.value}] {issue.group_key}: {issue.message}")
        return "\n".join(lines)
