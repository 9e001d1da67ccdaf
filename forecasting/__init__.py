"""Cash-flow forecasting engine: recurrence detection, expansion and projection."""

from forecasting.buckets import bucket_start
from forecasting.expansion import (
    MAX_EXPANSION_ITERATIONS,
    expand_recurrence,
    expand_series,
    expand_template,
    next_occurrence,
    rule_occurrences,
)
from forecasting.projection import aggregate_buckets, latest_checkpoint, project, project_accounts
from forecasting.recurring import (
    MIN_OCCURRENCES,
    SENSITIVITY_THRESHOLDS,
    detect_recurring,
    normalize_description,
    signature_key,
)
from forecasting.summary import balance_as_of, summarize_projection

__all__ = [
    "bucket_start",
    "MAX_EXPANSION_ITERATIONS",
    "expand_recurrence",
    "expand_series",
    "expand_template",
    "next_occurrence",
    "rule_occurrences",
    "aggregate_buckets",
    "latest_checkpoint",
    "project",
    "project_accounts",
    "MIN_OCCURRENCES",
    "SENSITIVITY_THRESHOLDS",
    "detect_recurring",
    "normalize_description",
    "signature_key",
    "balance_as_of",
    "summarize_projection",
]
