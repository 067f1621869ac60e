"""Recompute results whenever the backend reports a relevant change.

The realtime transport itself lives outside this package: the host
subscribes to the backend's change feed and forwards each payload to
:meth:`ResultsBoard.handle_scoring_change`. Payloads follow the change-feed
shape ``{"eventType": ..., "new": {...}, "old": {...}}``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Any, Callable, Mapping, Optional, Union

from .sources import PrizeConfigSource, Scope, ScoreSource
from .workflows import UNSET, ScopeResults, compute_scope_results

logger = logging.getLogger(__name__)


def _changed_record(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the row a change payload is about (the new row, else the old)."""
    return payload.get("new") or payload.get("old") or {}


@dataclass(frozen=True)
class ScoringChangeFilter:
    """Decide whether a change notification concerns the watched scope.

    Attributes
    ----------
    event_id : str
        Event being watched.
    category_id, subcategory_id : Optional[str]
        Narrow the watch to a single scope; ``None`` watches every scope of
        the event.
    """

    event_id: str
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None

    @classmethod
    def for_scope(cls, scope: Scope) -> "ScoringChangeFilter":
        return cls(scope.event_id, scope.category_id, scope.subcategory_id)

    def matches_scoring_change(self, payload: Mapping[str, Any]) -> bool:
        """Return ``True`` for ``event_scoring`` changes inside the scope.

        Rows that do not carry a scope column are assumed relevant.
        """
        record = _changed_record(payload)
        if self.category_id and "category_id" in record:
            if record["category_id"] != self.category_id:
                return False
        if self.subcategory_id and "subcategory_id" in record:
            if record["subcategory_id"] != self.subcategory_id:
                return False
        return True

    def matches_history_change(self, payload: Mapping[str, Any]) -> bool:
        """Return ``True`` for ``event_scoring_history`` entries of the scope."""
        record = _changed_record(payload)
        if "event_id" in record and record["event_id"] != self.event_id:
            return False
        if self.category_id and self.subcategory_id and "category_id" in record:
            if (
                record.get("category_id") != self.category_id
                or record.get("subcategory_id") != self.subcategory_id
            ):
                return False
        return True


class ResultsBoard:
    """Hold the latest results of one scope and recompute them on demand.

    Every refresh recomputes from scratch. Refreshes are numbered and a
    result is only published if no later refresh has published first.
    """

    def __init__(
        self,
        score_source: ScoreSource,
        config_source: PrizeConfigSource,
        scope: Scope,
        *,
        tie_precision: Union[int, None, object] = UNSET,
        on_update: Optional[Callable[[ScopeResults], None]] = None,
        on_history: Optional[Callable[[Mapping[str, Any]], None]] = None,
    ) -> None:
        """Create a board for ``scope``.

        Parameters
        ----------
        score_source, config_source
            Injected snapshot sources.
        scope : Scope
            Scope whose results are displayed.
        tie_precision : Optional[int]
            Forwarded to :func:`~pianojury.workflows.compute_scope_results`.
        on_update : Optional[Callable[[ScopeResults], None]]
            Called with every newly published result.
        on_history : Optional[Callable[[Mapping[str, Any]], None]]
            Called with relevant scoring history notifications.
        """
        self._score_source = score_source
        self._config_source = config_source
        self._tie_precision = tie_precision
        self._on_update = on_update
        self._on_history = on_history
        self.scope = scope
        self.change_filter = ScoringChangeFilter.for_scope(scope)

        self._lock = threading.Lock()
        self._requested = 0
        self._published = 0
        # Newest generation that finished, successfully or not
        self._settled = 0
        self._results: Optional[ScopeResults] = None
        self.last_error: Optional[Exception] = None

    @property
    def results(self) -> Optional[ScopeResults]:
        """Latest published results, ``None`` before the first refresh."""
        return self._results

    @property
    def stale(self) -> bool:
        """``True`` when the most recently started refresh to finish failed."""
        return self.last_error is not None

    def refresh(self) -> Optional[ScopeResults]:
        """Recompute the scope from a fresh snapshot.

        Returns
        -------
        Optional[ScopeResults]
            The new results, or ``None`` if a later refresh already
            published and this one was discarded.

        Raises
        ------
        Exception
            Whatever the sources raise. Previously published results are
            kept; :attr:`stale` becomes ``True`` unless a later refresh
            has already finished.
        """
        with self._lock:
            self._requested += 1
            generation = self._requested

        try:
            results = compute_scope_results(
                self._score_source,
                self._config_source,
                self.scope,
                tie_precision=self._tie_precision,
            )
        except Exception as exc:
            logger.exception(f"Refreshing results for {self.scope} failed")
            with self._lock:
                if generation > self._settled:
                    self._settled = generation
                    self.last_error = exc
            raise

        with self._lock:
            if generation < self._published:
                logger.debug(f"Discarding refresh #{generation}; #{self._published} is newer")
                return None
            self._published = generation
            self._results = results
            if generation > self._settled:
                self._settled = generation
                self.last_error = None

        if self._on_update is not None:
            self._on_update(results)
        return results

    def handle_scoring_change(self, payload: Mapping[str, Any]) -> bool:
        """Refresh if ``payload`` concerns the scope; return whether it did."""
        if not self.change_filter.matches_scoring_change(payload):
            return False
        logger.debug(f"Scoring change for {self.scope}; recomputing")
        self.refresh()
        return True

    def handle_history_change(self, payload: Mapping[str, Any]) -> bool:
        """Forward relevant history notifications to ``on_history``."""
        if self._on_history is None:
            return False
        if not self.change_filter.matches_history_change(payload):
            return False
        self._on_history(payload)
        return True


__all__ = ["ResultsBoard", "ScoringChangeFilter"]
