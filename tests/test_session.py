"""
Unit tests for the ledger session.

Tests load-or-empty startup, save after each mutation, and undo/redo.
"""

import os
import tempfile
from datetime import date
from unittest.mock import MagicMock

import pytest

from site_ledger.config.loader import RatesConfig
from site_ledger.core.entries import LaborInput, MaterialInput
from site_ledger.core.errors import DuplicateName, NotFound, NothingToUndo
from site_ledger.core.ledger import Ledger
from site_ledger.core.session import LedgerSession
from site_ledger.storage.repository import LedgerRepository

DAY = date(2024, 3, 1)


@pytest.fixture
def db_path():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield os.path.join(temp_dir, "test.db")


@pytest.fixture
def session(db_path):
    session = LedgerSession(LedgerRepository(db_path), RatesConfig())
    session.open()
    return session


@pytest.fixture
def mock_repository():
    repository = MagicMock()
    repository.load.return_value = Ledger()
    return repository


class TestSessionPersistence:
    """Test that the session persists every successful mutation."""

    def test_open_empty(self, session):
        """Verify a new database opens as an empty ledger."""
        assert len(session.ledger) == 0
        assert not session.can_undo

    def test_mutations_survive_reopen(self, db_path, session):
        """Verify a fresh session sees what the previous one saved."""
        project = session.create_project("Maison Dupont", 10, 5000, DAY)
        session.add_labor_entry(project.id, LaborInput("Alice", 2000, 20, DAY))
        session.add_material_entry(project.id, MaterialInput("Cement", 100, 3, DAY))

        reopened = LedgerSession(LedgerRepository(db_path), RatesConfig())
        reopened.open()

        assert reopened.ledger == session.ledger

    def test_save_called_per_mutation(self, mock_repository):
        """Verify one save per successful operation."""
        session = LedgerSession(mock_repository, RatesConfig())
        session.open()

        project = session.create_project("Garage", 10, None, DAY)
        session.update_project(project.id, overhead_percent=12)
        session.add_material_entry(project.id, MaterialInput("Doors", 250, 2, DAY))
        session.update_material_entry(project.id, 0, MaterialInput("Doors", 250, 3, DAY))
        session.delete_material_entry(project.id, 0)

        assert mock_repository.save.call_count == 5
        mock_repository.save.assert_called_with(session.ledger)

    def test_rejected_mutation_not_saved(self, mock_repository):
        """Verify a rejected operation neither saves nor changes the ledger."""
        session = LedgerSession(mock_repository, RatesConfig())
        session.open()
        session.create_project("Garage", 10, None, DAY)
        before = session.ledger
        mock_repository.save.reset_mock()

        with pytest.raises(DuplicateName):
            session.create_project("GARAGE", 10, None, DAY)
        with pytest.raises(NotFound):
            session.delete_labor_entry(before.project_ids()[0], 0)

        mock_repository.save.assert_not_called()
        assert session.ledger == before
        assert len(session.ledger) == 1

    def test_failed_save_keeps_previous_ledger(self, mock_repository):
        """Verify the in-memory ledger only advances after a successful save."""
        session = LedgerSession(mock_repository, RatesConfig())
        session.open()
        mock_repository.save.side_effect = OSError("disk full")

        with pytest.raises(OSError):
            session.create_project("Garage", 10, None, DAY)

        assert len(session.ledger) == 0
        assert not session.can_undo


class TestSessionHistory:
    """Test undo and redo."""

    def test_undo_restores_previous_state(self, session):
        """Verify undo returns to the ledger before the last mutation."""
        project = session.create_project("Garage", 10, None, DAY)
        after_create = session.ledger
        session.add_material_entry(project.id, MaterialInput("Doors", 250, 2, DAY))

        session.undo()

        assert session.ledger == after_create
        assert session.can_redo

    def test_redo_reapplies(self, session):
        """Verify redo restores the undone state."""
        project = session.create_project("Garage", 10, None, DAY)
        session.add_material_entry(project.id, MaterialInput("Doors", 250, 2, DAY))
        latest = session.ledger

        session.undo()
        session.redo()

        assert session.ledger == latest
        assert not session.can_redo

    def test_undo_is_persisted(self, db_path, session):
        """Verify undo saves the restored ledger."""
        session.create_project("Garage", 10, None, DAY)
        session.undo()

        reopened = LedgerSession(LedgerRepository(db_path), RatesConfig())
        assert len(reopened.open()) == 0

    def test_new_mutation_clears_redo(self, session):
        """Verify redo history is dropped after a new mutation."""
        session.create_project("Garage", 10, None, DAY)
        session.undo()
        session.create_project("Shed", 10, None, DAY)

        assert not session.can_redo
        with pytest.raises(NothingToUndo):
            session.redo()

    def test_empty_history(self, session):
        """Verify undo without history raises NothingToUndo."""
        with pytest.raises(NothingToUndo) as exc_info:
            session.undo()
        assert exc_info.value.code == "NOTHING_TO_UNDO"

    def test_history_limit(self, mock_repository):
        """Verify only the configured number of states is kept."""
        session = LedgerSession(mock_repository, RatesConfig(), history_limit=2)
        session.open()
        for name in ["A", "B", "C"]:
            session.create_project(name, 10, None, DAY)

        session.undo()
        session.undo()

        assert [p.name for p in session.ledger] == ["A"]
        with pytest.raises(NothingToUndo):
            session.undo()
