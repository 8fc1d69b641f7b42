# core/effects.py

"""
POST-COMMIT EFFECTS

Lifecycle operations are split into:
1) a transactional core (validate + persist + history)
2) a list of best-effort side effects (notify, sync inventory, ...)

Effects are queued while the transaction is open and only run once it
commits. Each effect runs in its own guard: a failure is logged with context
and never reaches the caller, the committed rows, or the other effects.
If the transaction rolls back, nothing runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from django.db import DEFAULT_DB_ALIAS, transaction

logger = logging.getLogger(__name__)


@dataclass
class _Effect:
    name: str
    fn: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)


class PostCommitEffects:
    def __init__(self, *, using: str = DEFAULT_DB_ALIAS, context: dict | None = None):
        self.using = using
        self.context = dict(context or {})
        self._effects: list[_Effect] = []

    def __len__(self):
        return len(self._effects)

    def add(self, name: str, fn: Callable[..., Any], *args, **kwargs) -> None:
        self._effects.append(_Effect(name=name, fn=fn, args=args, kwargs=kwargs))

    def run_all(self) -> None:
        for effect in self._effects:
            try:
                effect.fn(*effect.args, **effect.kwargs)
            except Exception:
                logger.exception(
                    "Post-commit effect failed",
                    extra={"effect": effect.name, **self.context},
                )

    def schedule(self) -> None:
        """
        Must be called inside the owning transaction.atomic() block.
        Outside a transaction Django runs the callback immediately.
        """
        if not self._effects:
            return
        transaction.on_commit(self.run_all, using=self.using)
