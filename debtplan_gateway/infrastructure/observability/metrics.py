"""Prometheus metrics for monitoring plan outcomes, risk distribution, and insight calls"""

from prometheus_client import Counter, Histogram

# Planning metrics
plan_counter = Counter(
    "debtplan_plans_total",
    "Repayment plans computed",
    ["strategy", "committed"],  # committed: "true" | "false" (preview)
)

plan_rejection_counter = Counter(
    "debtplan_plan_rejections_total",
    "Plan requests rejected by the engine",
    ["reason"],  # infeasible_budget | plan_does_not_converge | validation_error
)

plan_months_histogram = Histogram(
    "debtplan_months_to_payoff",
    "Months to pay off all debts in computed plans",
    buckets=[6, 12, 24, 36, 60, 120, 240, 600],
)

# Risk metrics
risk_tier_counter = Counter(
    "debtplan_risk_assessments_total",
    "DTI risk assessments by tier",
    ["tier"],  # safe | moderate | high | critical | insufficient_data
)

# Insight service metrics
insight_latency_histogram = Histogram(
    "insight_latency_seconds",
    "AI insight service response time",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

insight_failure_counter = Counter(
    "insight_failures_total",
    "Failed AI insight requests",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_plan(strategy: str, months_to_payoff: int, committed: bool) -> None:
    """Record plan metrics for monitoring strategy mix and payoff horizons"""
    plan_counter.labels(strategy=strategy, committed="true" if committed else "false").inc()
    plan_months_histogram.observe(months_to_payoff)


def record_plan_rejection(reason: str) -> None:
    plan_rejection_counter.labels(reason=reason).inc()


def record_risk_tier(tier: str) -> None:
    risk_tier_counter.labels(tier=tier).inc()
