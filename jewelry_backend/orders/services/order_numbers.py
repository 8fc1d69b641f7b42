# orders/services/order_numbers.py

from __future__ import annotations

from django.db import IntegrityError, transaction
from django.utils import timezone

from orders.models import OrderNumberSequence


def next_order_number(*, using: str, now=None) -> str:
    """
    ORD<YYMMDD><NNNN>, NNNN being a per-day counter.

    Must run inside the caller's transaction: the sequence row stays locked
    until the order row using the number commits.
    """
    day = timezone.localtime(now or timezone.now()).date()

    try:
        with transaction.atomic(using=using):
            OrderNumberSequence.objects.using(using).get_or_create(day=day)
    except IntegrityError:
        # another transaction created today's row first
        pass

    seq = OrderNumberSequence.objects.using(using).select_for_update().get(day=day)
    seq.last_value += 1
    seq.save(using=using, update_fields=["last_value"])

    return f"ORD{day:%y%m%d}{seq.last_value:04d}"
