"""Request admission middleware."""

from .quota import QuotaDecision, QuotaEntry, QuotaGuard, QuotaStore

__all__ = ["QuotaDecision", "QuotaEntry", "QuotaGuard", "QuotaStore"]
