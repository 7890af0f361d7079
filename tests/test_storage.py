"""
Unit tests for the storage layer.

Tests snapshot encoding, schema creation, and full-snapshot save and load.
"""

import json
import os
import tempfile
from datetime import date

import pytest

from site_ledger.config.loader import RatesConfig
from site_ledger.core.entries import LaborInput, MaterialInput
from site_ledger.core.errors import DuplicateName, InvalidInput
from site_ledger.core.ledger import Ledger
from site_ledger.storage.db import get_connection
from site_ledger.storage.repository import LedgerRepository, initialize_schema
from site_ledger.storage.snapshot import ledger_from_snapshot, ledger_to_snapshot

DAY = date(2024, 3, 1)


def _sample_ledger(rates=None):
    ledger = Ledger(rates=rates or RatesConfig())
    ledger, first = ledger.create_project("Maison Dupont", 10, 5000, DAY, project_id=1)
    ledger, second = ledger.create_project("Garage", 5, None, date(2024, 4, 2), project_id=2)
    ledger, _ = ledger.add_labor_entry(first.id, LaborInput("Alice", 2000, 20, DAY))
    ledger, _ = ledger.add_material_entry(first.id, MaterialInput("Cement", 100, 3, DAY))
    ledger, _ = ledger.add_material_entry(second.id, MaterialInput("Doors", 250, 2, DAY))
    return ledger


class TestSnapshot:
    """Test snapshot encoding and decoding."""

    def test_snapshot_is_json_compatible(self):
        """Verify the snapshot uses ISO dates and plain numbers."""
        snapshot = ledger_to_snapshot(_sample_ledger())
        restored = json.loads(json.dumps(snapshot))

        assert restored == snapshot
        assert snapshot[0]["creation_date"] == "2024-03-01"
        assert snapshot[0]["sale_price"] == 5000
        assert snapshot[1]["sale_price"] is None
        assert snapshot[0]["labor_entries"][0]["recorded_date"] == "2024-03-01"
        assert snapshot[0]["material_entries"][0]["total"] == 300

    def test_round_trip(self):
        """Verify decoding a snapshot gives an equal ledger."""
        ledger = _sample_ledger()
        snapshot = json.loads(json.dumps(ledger_to_snapshot(ledger)))
        assert ledger_from_snapshot(snapshot, RatesConfig()) == ledger

    def test_load_rederives_with_given_rates(self):
        """Verify labor entries are recomputed with the configured rates."""
        snapshot = ledger_to_snapshot(_sample_ledger())
        snapshot[0]["labor_entries"][0]["cost_for_hours"] = 1.0

        rates = RatesConfig(employer_charge_rate=0.0)
        ledger = ledger_from_snapshot(snapshot, rates)
        entry = ledger.get_project(1).labor_entries[0]

        assert entry.employer_monthly_cost == pytest.approx(2000 / 0.77)
        assert entry.cost_for_hours != 1.0

    def test_malformed_snapshot(self):
        """Verify missing fields raise InvalidInput."""
        with pytest.raises(InvalidInput):
            ledger_from_snapshot([{"name": "Garage"}], RatesConfig())

    def test_non_list_snapshot(self):
        """Verify the top level must be a list."""
        with pytest.raises(InvalidInput):
            ledger_from_snapshot({"projects": []}, RatesConfig())

    def test_invalid_values_rejected(self):
        """Verify stored values go through normal validation."""
        snapshot = ledger_to_snapshot(_sample_ledger())
        snapshot[0]["material_entries"][0]["unit_price"] = -1
        with pytest.raises(InvalidInput):
            ledger_from_snapshot(snapshot, RatesConfig())

    def test_duplicate_names_rejected(self):
        """Verify a snapshot with colliding names is rejected."""
        snapshot = ledger_to_snapshot(_sample_ledger())
        snapshot[1]["name"] = "MAISON DUPONT"
        with pytest.raises(DuplicateName):
            ledger_from_snapshot(snapshot, RatesConfig())


class TestRepository:
    """Test SQLite persistence."""

    def test_schema_creation(self):
        """Verify the snapshot table is created."""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            initialize_schema(db_path)

            conn = get_connection(db_path)
            try:
                cursor = conn.execute("PRAGMA table_info(ledger_snapshot)")
                column_names = [col[1] for col in cursor.fetchall()]
                assert column_names == ['id', 'saved_at', 'payload']
            finally:
                conn.close()

    def test_connection_opens_given_file(self):
        """Verify a plain connection is opened on the requested file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            conn = get_connection(db_path)
            try:
                assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 0
                conn.execute("CREATE TABLE t (x INTEGER)")
                conn.commit()
            finally:
                conn.close()

            assert os.path.exists(db_path)

    def test_load_missing_database_is_empty(self):
        """Verify loading before any save returns an empty ledger."""
        with tempfile.TemporaryDirectory() as temp_dir:
            repository = LedgerRepository(os.path.join(temp_dir, "test.db"))
            ledger = repository.load(RatesConfig())

            assert len(ledger) == 0
            assert repository.last_saved_at() is None

    def test_load_initialized_but_empty(self):
        """Verify an initialized database without a snapshot loads empty."""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            initialize_schema(db_path)
            assert len(LedgerRepository(db_path).load(RatesConfig())) == 0

    def test_save_and_load(self):
        """Verify a saved ledger loads back equal."""
        with tempfile.TemporaryDirectory() as temp_dir:
            repository = LedgerRepository(os.path.join(temp_dir, "test.db"))
            ledger = _sample_ledger()

            repository.save(ledger)

            assert repository.load(RatesConfig()) == ledger
            assert repository.last_saved_at() is not None

    def test_save_replaces_snapshot(self):
        """Verify each save replaces the previous snapshot."""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            repository = LedgerRepository(db_path)
            ledger = _sample_ledger()

            repository.save(ledger)
            repository.save(ledger.delete_project(1))

            loaded = repository.load(RatesConfig())
            assert loaded.project_ids() == [2]

            conn = get_connection(db_path)
            try:
                count = conn.execute("SELECT COUNT(*) FROM ledger_snapshot").fetchone()[0]
                assert count == 1
            finally:
                conn.close()

    def test_unicode_names(self):
        """Verify accented names survive storage."""
        with tempfile.TemporaryDirectory() as temp_dir:
            repository = LedgerRepository(os.path.join(temp_dir, "test.db"))
            ledger, _ = Ledger().create_project("Rénovation Crèche", 10, None, DAY, project_id=1)

            repository.save(ledger)

            assert repository.load(RatesConfig()).get_project(1).name == "Rénovation Crèche"
