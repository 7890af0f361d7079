"""
Snapshot codec for the ledger.

A snapshot is a list of plain dictionaries (one per project, with nested
entry lists) that survives a JSON round trip: dates are ISO strings and
numbers are floats. Derived entry fields are written for downstream
consumers but ignored on load, where every entry is re-derived from its
inputs through the ledger itself.
"""

from datetime import date
from typing import Any, Dict, List

from site_ledger.config.loader import RatesConfig
from site_ledger.core.entries import LaborEntry, LaborInput, MaterialEntry, MaterialInput
from site_ledger.core.errors import InvalidInput
from site_ledger.core.ledger import Ledger, Project


def ledger_to_snapshot(ledger: Ledger) -> List[Dict[str, Any]]:
    """Serialize a ledger to a list of project dictionaries."""
    return [_project_to_dict(project) for project in ledger.projects]


def ledger_from_snapshot(data: List[Dict[str, Any]], rates: RatesConfig) -> Ledger:
    """Rebuild a ledger from a snapshot.

    Projects go through the regular ledger operations, so a snapshot that
    violates an invariant (duplicate names, negative prices) is rejected the
    same way an interactive edit would be.

    Args:
        data: Snapshot as produced by ledger_to_snapshot
        rates: Rates used to re-derive labor entries

    Returns:
        Ledger equivalent to the one that was saved

    Raises:
        InvalidInput: If the snapshot is malformed
        DuplicateName: If two projects share a name
    """
    if not isinstance(data, list):
        raise InvalidInput("Snapshot must be a list of projects", field="snapshot")

    ledger = Ledger(rates=rates)
    for position, raw in enumerate(data):
        try:
            ledger = _load_project(ledger, raw)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            if isinstance(e, InvalidInput):
                raise
            raise InvalidInput(f"Malformed project at position {position}: {e}", field="snapshot")
    return ledger


def _load_project(ledger: Ledger, raw: Dict[str, Any]) -> Ledger:
    ledger, project = ledger.create_project(
        name=raw["name"],
        overhead_percent=raw["overhead_percent"],
        sale_price=raw.get("sale_price"),
        creation_date=date.fromisoformat(raw["creation_date"]),
        project_id=raw["id"]
    )
    for item in raw.get("labor_entries", []):
        ledger, _ = ledger.add_labor_entry(project.id, LaborInput(
            name=item["name"],
            net_monthly_wage=item["net_monthly_wage"],
            hours_on_project=item["hours_on_project"],
            recorded_date=date.fromisoformat(item["recorded_date"])
        ))
    for item in raw.get("material_entries", []):
        ledger, _ = ledger.add_material_entry(project.id, MaterialInput(
            name=item["name"],
            unit_price=item["unit_price"],
            quantity=item["quantity"],
            recorded_date=date.fromisoformat(item["recorded_date"])
        ))
    return ledger


def _project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "overhead_percent": project.overhead_percent,
        "sale_price": project.sale_price,
        "creation_date": project.creation_date.isoformat(),
        "labor_entries": [_labor_to_dict(e) for e in project.labor_entries],
        "material_entries": [_material_to_dict(e) for e in project.material_entries],
    }


def _labor_to_dict(entry: LaborEntry) -> Dict[str, Any]:
    return {
        "name": entry.name,
        "net_monthly_wage": entry.net_monthly_wage,
        "hours_on_project": entry.hours_on_project,
        "recorded_date": entry.recorded_date.isoformat(),
        "gross_wage": entry.gross_wage,
        "employer_monthly_cost": entry.employer_monthly_cost,
        "employer_charges": entry.employer_charges,
        "cost_for_hours": entry.cost_for_hours,
    }


def _material_to_dict(entry: MaterialEntry) -> Dict[str, Any]:
    return {
        "name": entry.name,
        "unit_price": entry.unit_price,
        "quantity": entry.quantity,
        "recorded_date": entry.recorded_date.isoformat(),
        "total": entry.total,
    }
