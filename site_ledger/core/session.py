"""
Ledger session.

Holds the current ledger value for a presentation layer, saves a full
snapshot after every successful mutation, and keeps undo/redo history.
The session is not thread-safe; a concurrent host must guard it with a
single lock.
"""

from datetime import date
from typing import Callable, List, Optional, Tuple

from site_ledger.config.loader import RatesConfig
from site_ledger.logging_config import get_logger
from site_ledger.storage.repository import LedgerRepository

from .entries import LaborEntry, LaborInput, MaterialEntry, MaterialInput
from .errors import LedgerError, NothingToUndo
from .ledger import UNSET, Ledger, Project

logger = get_logger("core.session")

# Oldest states are dropped beyond this depth
DEFAULT_HISTORY_LIMIT = 50


class LedgerSession:
    """Applies CRUD operations to a ledger and persists each result."""

    def __init__(
        self,
        repository: LedgerRepository,
        rates: RatesConfig,
        history_limit: int = DEFAULT_HISTORY_LIMIT
    ):
        self.repository = repository
        self.rates = rates
        self.history_limit = history_limit
        self._ledger = Ledger(rates=rates)
        self._undo: List[Ledger] = []
        self._redo: List[Ledger] = []

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def open(self) -> Ledger:
        """Load the stored ledger, or start empty when nothing was saved."""
        self._ledger = self.repository.load(self.rates)
        self._undo.clear()
        self._redo.clear()
        logger.info("Opened ledger with %d projects", len(self._ledger))
        return self._ledger

    # -- projects ---------------------------------------------------------

    def create_project(
        self,
        name: str,
        overhead_percent: float,
        sale_price: Optional[float] = None,
        creation_date: Optional[date] = None
    ) -> Project:
        return self._apply(
            "create_project",
            lambda ledger: ledger.create_project(name, overhead_percent, sale_price, creation_date)
        )

    def delete_project(self, project_id: int) -> None:
        self._apply("delete_project", lambda ledger: (ledger.delete_project(project_id), None))

    def update_project(self, project_id: int, *, name=UNSET, overhead_percent=UNSET, sale_price=UNSET) -> Project:
        return self._apply(
            "update_project",
            lambda ledger: ledger.update_project(
                project_id, name=name, overhead_percent=overhead_percent, sale_price=sale_price
            )
        )

    # -- entries ----------------------------------------------------------

    def add_labor_entry(self, project_id: int, data: LaborInput) -> LaborEntry:
        return self._apply("add_labor_entry", lambda ledger: ledger.add_labor_entry(project_id, data))

    def update_labor_entry(self, project_id: int, index: int, data: LaborInput) -> LaborEntry:
        return self._apply(
            "update_labor_entry",
            lambda ledger: ledger.update_labor_entry(project_id, index, data)
        )

    def delete_labor_entry(self, project_id: int, index: int) -> None:
        self._apply(
            "delete_labor_entry",
            lambda ledger: (ledger.delete_labor_entry(project_id, index), None)
        )

    def add_material_entry(self, project_id: int, data: MaterialInput) -> MaterialEntry:
        return self._apply("add_material_entry", lambda ledger: ledger.add_material_entry(project_id, data))

    def update_material_entry(self, project_id: int, index: int, data: MaterialInput) -> MaterialEntry:
        return self._apply(
            "update_material_entry",
            lambda ledger: ledger.update_material_entry(project_id, index, data)
        )

    def delete_material_entry(self, project_id: int, index: int) -> None:
        self._apply(
            "delete_material_entry",
            lambda ledger: (ledger.delete_material_entry(project_id, index), None)
        )

    # -- history ----------------------------------------------------------

    def undo(self) -> Ledger:
        """Restore the ledger as it was before the last mutation.

        Raises:
            NothingToUndo: If there is no earlier state
        """
        if not self._undo:
            raise NothingToUndo("Nothing to undo")
        previous = self._undo.pop()
        self.repository.save(previous)
        self._redo.append(self._ledger)
        self._ledger = previous
        logger.info("Undid last change")
        return previous

    def redo(self) -> Ledger:
        """Re-apply the last undone mutation.

        Raises:
            NothingToUndo: If nothing was undone
        """
        if not self._redo:
            raise NothingToUndo("Nothing to redo")
        following = self._redo.pop()
        self.repository.save(following)
        self._push_undo(self._ledger)
        self._ledger = following
        logger.info("Redid last undone change")
        return following

    def _apply(self, operation: str, mutate: Callable[[Ledger], Tuple[Ledger, object]]):
        try:
            new_ledger, result = mutate(self._ledger)
        except LedgerError as e:
            logger.warning("Rejected %s: %s (%s)", operation, e, e.code)
            raise

        self.repository.save(new_ledger)
        self._push_undo(self._ledger)
        self._redo.clear()
        self._ledger = new_ledger
        logger.info("Applied %s", operation)
        return result

    def _push_undo(self, ledger: Ledger) -> None:
        self._undo.append(ledger)
        if len(self._undo) > self.history_limit:
            del self._undo[0]
