"""Settlement engine package: pure functions over expense snapshots."""

from groupsplit.engine.aggregation import (
    member_summary,
    paid_by_member,
    spending_summary,
    totals_by_category,
    totals_by_month,
)
from groupsplit.engine.periods import (
    ProfileTimeFilter,
    TimeRange,
    month_period,
    parse_month,
    period_for_profile_filter,
    period_for_range,
    recent_months,
    trailing_months_period,
)
from groupsplit.engine.settlement import (
    calculate_settlement,
    compute_balances,
    equal_share,
    filter_by_period,
    filter_in_period,
    owed_amounts,
    participating_members,
    settle,
    total_spend,
)

__all__ = [
    # Settlement
    "calculate_settlement",
    "compute_balances",
    "equal_share",
    "filter_by_period",
    "filter_in_period",
    "owed_amounts",
    "participating_members",
    "settle",
    "total_spend",
    # Aggregation
    "member_summary",
    "paid_by_member",
    "spending_summary",
    "totals_by_category",
    "totals_by_month",
    # Periods
    "ProfileTimeFilter",
    "TimeRange",
    "month_period",
    "parse_month",
    "period_for_profile_filter",
    "period_for_range",
    "recent_months",
    "trailing_months_period",
]
