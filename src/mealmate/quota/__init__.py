from mealmate.quota.retry import RetryPolicy, with_retry
from mealmate.quota.tracker import QuotaTracker

__all__ = ["QuotaTracker", "RetryPolicy", "with_retry"]
