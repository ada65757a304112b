# salesscope/modules/analytics/constants.py

"""
Constants for analytics module.

Centralizes bucketing thresholds and dashboard windows.
"""

# Adaptive Bucketing (span of the filtered records, in whole days)
DAY_BUCKET_MAX_SPAN_DAYS = 31  # <= 31 days: one bucket per day
WEEK_BUCKET_MAX_SPAN_DAYS = 90  # <= 90 days: Monday-anchored weeks, beyond: months

# Rankings
DEFAULT_PRODUCT_LIMIT = 10
MAX_PRODUCT_LIMIT = 100

# Dashboard Windows
TREND_WINDOW_DAYS = 30  # Trend series covers today and the 30 days before it
RECENT_ACTIVITY_SHORT_DAYS = 7
RECENT_ACTIVITY_LONG_DAYS = 30
