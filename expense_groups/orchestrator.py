"""
Installment Tracker

This module ties the engine together for the UI and report layers:
1. Listing (snapshot -> index -> summaries with next charge)
2. Drill-down (one record -> its sibling installments)
3. Planning (purchase or edit -> records to create, update, delete)
4. Diagnostics and forecast over the same cached index

DESIGN DECISION: The tracker owns the memo the engine deliberately lacks.
The group index is built once per snapshot of the expense collection and
dropped whenever the snapshot changes (load/upsert/remove). A stale index
is never served after a change made through the tracker.
"""

from datetime import date
from typing import Iterable, Optional

from expense_groups.audit import QualityAuditLogger, get_logger
from expense_groups.config import get_settings
from expense_groups.installments import (
    InstallmentPlanRequest,
    ReplanOperations,
    build_groups,
    list_group_summaries,
    plan_installments,
    reconcile_replan,
    replan_request_from_group,
    resolve_group,
)
from expense_groups.models.expense import (
    ExpenseRecord,
    GroupIndex,
    GroupSummary,
    InstallmentItem,
)
from expense_groups.models.quality import DataQualityReport
from expense_groups.reports import ForecastMonth, InstallmentForecaster
from expense_groups.services.currency import (
    CachedCurrencyConverter,
    CurrencyConverterInterface,
    StaticRateSource,
)
from expense_groups.validation import GroupQualityChecker


class InstallmentTracker:
    """
    Holds one expense snapshot and answers installment questions about it.

    Not thread-safe for writers: callers that mutate the snapshot from
    several threads must serialise those calls themselves.
    """

    def __init__(
        self,
        converter: Optional[CurrencyConverterInterface] = None,
        base_currency: Optional[str] = None,
        quality_checker: Optional[GroupQualityChecker] = None,
        quality_logger: Optional[QualityAuditLogger] = None,
    ):
        self._base_currency = base_currency or get_settings().grouping.base_currency
        self._converter = converter
        self._quality_checker = quality_checker or GroupQualityChecker(self._base_currency)
        self._quality_logger = quality_logger
        self._records: tuple[ExpenseRecord, ...] = ()
        self._index: Optional[GroupIndex] = None
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Snapshot management
    # ------------------------------------------------------------------

    @property
    def records(self) -> tuple[ExpenseRecord, ...]:
        return self._records

    @property
    def base_currency(self) -> str:
        return self._base_currency

    def load(self, records: Iterable[ExpenseRecord]) -> None:
        """Replace the snapshot (e.g. after a full "get all expenses")."""
        self._records = tuple(records)
        self._invalidate()

    def upsert(self, record: ExpenseRecord) -> None:
        """
        Add a record, or replace the one with the same id.

        Records without an id are always appended.
        """
        if record.id is None:
            self._records = self._records + (record,)
        else:
            kept = tuple(r for r in self._records if r.id != record.id)
            self._records = kept + (record,)
        self._invalidate()

    def remove(self, record_id: str) -> bool:
        """Drop a record by id. Returns False when no record matched."""
        kept = tuple(r for r in self._records if r.id != record_id)
        removed = len(kept) != len(self._records)
        if removed:
            self._records = kept
            self._invalidate()
        return removed

    def _invalidate(self) -> None:
        self._index = None

    @property
    def index(self) -> GroupIndex:
        """Group index of the current snapshot, built on first use."""
        if self._index is None:
            self._index = build_groups(self._records, self._base_currency)
            self._logger.info(
                "index_rebuilt",
                record_count=len(self._records),
                group_count=len(self._index),
            )
            if self._quality_logger is not None:
                self._quality_logger.log_report(
                    self._quality_checker.check_index(self._index)
                )
        return self._index

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_groups(
        self,
        today: Optional[date] = None,
        include_finished: bool = True,
    ) -> list[GroupSummary]:
        """All installment purchases, with progress and next charge."""
        return list_group_summaries(self.index, today, include_finished)

    def installments_for(self, record: ExpenseRecord) -> list[InstallmentItem]:
        """Sibling installments of one record, ordered by installment number."""
        return resolve_group(record, self._records, self.index, self._base_currency)

    def quality_report(self) -> DataQualityReport:
        return self._quality_checker.check_index(self.index)

    def forecast(
        self,
        today: Optional[date] = None,
        months: int = 3,
    ) -> list[ForecastMonth]:
        """
        Monthly installment totals in base currency.

        Raises:
            RuntimeError: If the tracker was built without a converter
        """
        if self._converter is None:
            raise RuntimeError("Forecast requires a currency converter")
        return InstallmentForecaster(self._converter).forecast(self.index, today, months)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(self, request: InstallmentPlanRequest) -> list[ExpenseRecord]:
        """
        Records to create for a new purchase.

        The records are not added to the snapshot; callers upsert them
        once the persistence API has stored them and assigned ids.
        """
        records = plan_installments(request)
        self._logger.info(
            "installments_planned",
            count=len(records),
            group_id=records[0].group_id if records else None,
        )
        return records

    def edit_request_for(self, record: ExpenseRecord) -> Optional[InstallmentPlanRequest]:
        """Prefilled plan request for editing the purchase ``record`` belongs to."""
        return replan_request_from_group(
            self.installments_for(record),
            default_currency=self._base_currency,
        )

    def replan(
        self,
        record: ExpenseRecord,
        request: InstallmentPlanRequest,
    ) -> ReplanOperations:
        """
        Persistence calls that apply an edited plan to ``record``'s purchase.

        The purchase keeps its group id when it has one. Like ``plan``, the
        snapshot is not modified.
        """
        items = self.installments_for(record)
        if request.group_id is None:
            existing_group_id = next((item.group_id for item in items if item.group_id), None)
            if existing_group_id:
                request = request.model_copy(update={"group_id": existing_group_id})

        planned = plan_installments(request)
        operations = reconcile_replan(items, planned)
        self._logger.info(
            "installments_replanned",
            group_id=planned[0].group_id if planned else None,
            updates=len(operations.updates),
            creates=len(operations.creates),
            deletes=len(operations.delete_ids),
        )
        return operations


def create_tracker(
    rates: Optional[dict[str, object]] = None,
    log_quality: bool = True,
) -> InstallmentTracker:
    """
    Factory function to create a tracker with default collaborators.

    Args:
        rates: Fixed rate table (units per base-currency unit). When None,
            the tracker has no converter and cannot forecast.
        log_quality: Log data-quality findings after each rebuild.
    """
    base_currency = get_settings().grouping.base_currency

    converter = None
    if rates is not None:
        converter = CachedCurrencyConverter(
            StaticRateSource(rates),
            base_currency=base_currency,
        )

    return InstallmentTracker(
        converter=converter,
        base_currency=base_currency,
        quality_logger=QualityAuditLogger() if log_quality else None,
    )
