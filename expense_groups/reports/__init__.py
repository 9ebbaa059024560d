"""Report assembly package."""

from expense_groups.reports.forecast import ForecastMonth, InstallmentForecaster

__all__ = ["ForecastMonth", "InstallmentForecaster"]
