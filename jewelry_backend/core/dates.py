# core/dates.py

from __future__ import annotations

from datetime import date, datetime

from django.utils.dateparse import parse_date

from core.exceptions import ValidationError


def parse_day(value, *, field: str):
    """Accepts a date, a datetime or a YYYY-MM-DD string. Empty -> None."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = parse_date(str(value).strip())
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)", details={field: str(value)})
    return parsed


def filter_created_between(qs, *, date_from=None, date_to=None, field: str = "created_at"):
    """Both ends inclusive, whole days."""
    day_from = parse_day(date_from, field="date_from")
    day_to = parse_day(date_to, field="date_to")
    if day_from and day_to and day_from > day_to:
        raise ValidationError("date_from must not be after date_to")
    if day_from:
        qs = qs.filter(**{f"{field}__date__gte": day_from})
    if day_to:
        qs = qs.filter(**{f"{field}__date__lte": day_to})
    return qs
