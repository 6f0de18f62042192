"""Shared utilities used across 3+ features."""

from app.shared.models import TimestampMixin, utc_now

__all__ = ["TimestampMixin", "utc_now"]
