"""
Immutable project ledger.

Every CRUD operation validates first and then returns a new Ledger value;
the receiving ledger is never modified. A rejected operation therefore
leaves the caller's ledger exactly as it was.
"""

import time
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterator, List, Optional, Tuple

from site_ledger.config.loader import RatesConfig

from .entries import (
    LaborEntry,
    LaborInput,
    MaterialEntry,
    MaterialInput,
    derive_labor_entry,
    derive_material_entry,
)
from .errors import DuplicateName, InvalidInput, NotFound
from .validation import optional_non_negative, require_date, require_name, require_non_negative
from .wages import WageConverter


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks a keyword argument of update_project that was not supplied
UNSET = _Unset()


@dataclass(frozen=True)
class Project:
    """A construction site with its labor and material line items."""
    id: int
    name: str
    overhead_percent: float
    sale_price: Optional[float]
    creation_date: date
    labor_entries: Tuple[LaborEntry, ...] = ()
    material_entries: Tuple[MaterialEntry, ...] = ()


@dataclass(frozen=True)
class Ledger:
    """Ordered collection of projects; insertion order is display order."""
    rates: RatesConfig = field(default_factory=RatesConfig)
    projects: Tuple[Project, ...] = ()

    @property
    def converter(self) -> WageConverter:
        return WageConverter(self.rates)

    def __len__(self) -> int:
        return len(self.projects)

    def __iter__(self) -> Iterator[Project]:
        return iter(self.projects)

    def project_ids(self) -> List[int]:
        return [project.id for project in self.projects]

    def get_project(self, project_id: int) -> Project:
        """Return the project with this id.

        Raises:
            NotFound: If no project has this id
        """
        return self.projects[self._index_of(project_id)]

    def find_project(self, name: str) -> Optional[Project]:
        """Return the project whose name matches case-insensitively, if any."""
        key = _name_key(name)
        for project in self.projects:
            if _name_key(project.name) == key:
                return project
        return None

    # -- projects ---------------------------------------------------------

    def create_project(
        self,
        name: str,
        overhead_percent: float,
        sale_price: Optional[float] = None,
        creation_date: Optional[date] = None,
        project_id: Optional[int] = None
    ) -> Tuple["Ledger", Project]:
        """Create an empty project at the end of the ledger.

        Args:
            name: Project name, unique case-insensitively
            overhead_percent: Overhead markup applied to the subtotal
            sale_price: Quoted sale price, or None if not agreed yet
            creation_date: Creation date, today when omitted
            project_id: Explicit id; a fresh one is assigned when omitted

        Returns:
            Tuple of the new ledger and the created project

        Raises:
            InvalidInput: If name is empty, a number or the date is invalid, or
                project_id is already used
            DuplicateName: If another project has the same name
        """
        clean_name = require_name(name)
        overhead = require_non_negative(overhead_percent, "overhead_percent")
        price = optional_non_negative(sale_price, "sale_price")
        created = date.today() if creation_date is None else require_date(creation_date, "creation_date")
        self._check_unique_name(clean_name)

        if project_id is None:
            project_id = self._next_id()
        elif isinstance(project_id, bool) or not isinstance(project_id, int):
            raise InvalidInput("project_id must be an integer", field="project_id", value=project_id)
        elif project_id in self.project_ids():
            raise InvalidInput(f"project id {project_id} is already used", field="project_id", value=project_id)

        project = Project(
            id=project_id,
            name=clean_name,
            overhead_percent=overhead,
            sale_price=price,
            creation_date=created
        )
        return replace(self, projects=self.projects + (project,)), project

    def delete_project(self, project_id: int) -> "Ledger":
        """Remove a project together with all of its entries."""
        index = self._index_of(project_id)
        return replace(self, projects=self.projects[:index] + self.projects[index + 1:])

    def update_project(
        self,
        project_id: int,
        *,
        name=UNSET,
        overhead_percent=UNSET,
        sale_price=UNSET
    ) -> Tuple["Ledger", Project]:
        """Partially update a project's name, overhead or sale price.

        Pass ``sale_price=None`` to clear the sale price. Entries are kept.

        Raises:
            NotFound: If the project does not exist
            InvalidInput: If a supplied value is invalid
            DuplicateName: If the new name belongs to another project
        """
        project = self.get_project(project_id)
        changes = {}

        if name is not UNSET:
            clean_name = require_name(name)
            self._check_unique_name(clean_name, ignore_id=project_id)
            changes["name"] = clean_name
        if overhead_percent is not UNSET:
            changes["overhead_percent"] = require_non_negative(overhead_percent, "overhead_percent")
        if sale_price is not UNSET:
            changes["sale_price"] = optional_non_negative(sale_price, "sale_price")

        updated = replace(project, **changes)
        return self._with_project(updated), updated

    # -- labor entries ----------------------------------------------------

    def add_labor_entry(self, project_id: int, data: LaborInput) -> Tuple["Ledger", LaborEntry]:
        """Derive a labor entry and append it to the project."""
        project = self.get_project(project_id)
        entry = derive_labor_entry(data, self.converter)
        updated = replace(project, labor_entries=project.labor_entries + (entry,))
        return self._with_project(updated), entry

    def update_labor_entry(
        self, project_id: int, index: int, data: LaborInput
    ) -> Tuple["Ledger", LaborEntry]:
        """Re-derive and replace the labor entry at ``index``."""
        project = self.get_project(project_id)
        _check_index(index, project.labor_entries, "labor")
        entry = derive_labor_entry(data, self.converter)
        entries = _replace_at(project.labor_entries, index, entry)
        return self._with_project(replace(project, labor_entries=entries)), entry

    def delete_labor_entry(self, project_id: int, index: int) -> "Ledger":
        """Remove the labor entry at ``index``; later entries shift down."""
        project = self.get_project(project_id)
        _check_index(index, project.labor_entries, "labor")
        entries = project.labor_entries[:index] + project.labor_entries[index + 1:]
        return self._with_project(replace(project, labor_entries=entries))

    # -- material entries -------------------------------------------------

    def add_material_entry(self, project_id: int, data: MaterialInput) -> Tuple["Ledger", MaterialEntry]:
        """Derive a material entry and append it to the project."""
        project = self.get_project(project_id)
        entry = derive_material_entry(data)
        updated = replace(project, material_entries=project.material_entries + (entry,))
        return self._with_project(updated), entry

    def update_material_entry(
        self, project_id: int, index: int, data: MaterialInput
    ) -> Tuple["Ledger", MaterialEntry]:
        """Re-derive and replace the material entry at ``index``."""
        project = self.get_project(project_id)
        _check_index(index, project.material_entries, "material")
        entry = derive_material_entry(data)
        entries = _replace_at(project.material_entries, index, entry)
        return self._with_project(replace(project, material_entries=entries)), entry

    def delete_material_entry(self, project_id: int, index: int) -> "Ledger":
        """Remove the material entry at ``index``; later entries shift down."""
        project = self.get_project(project_id)
        _check_index(index, project.material_entries, "material")
        entries = project.material_entries[:index] + project.material_entries[index + 1:]
        return self._with_project(replace(project, material_entries=entries))

    # -- helpers ----------------------------------------------------------

    def _index_of(self, project_id: int) -> int:
        for i, project in enumerate(self.projects):
            if project.id == project_id:
                return i
        raise NotFound(f"Project {project_id} not found")

    def _with_project(self, project: Project) -> "Ledger":
        index = self._index_of(project.id)
        return replace(self, projects=_replace_at(self.projects, index, project))

    def _check_unique_name(self, name: str, ignore_id: Optional[int] = None) -> None:
        existing = self.find_project(name)
        if existing is not None and existing.id != ignore_id:
            raise DuplicateName(name)

    def _next_id(self) -> int:
        # Millisecond timestamp, bumped past the largest id so ids stay
        # unique and ordered by creation even within one millisecond
        candidate = int(time.time() * 1000)
        if self.projects:
            candidate = max(candidate, max(self.project_ids()) + 1)
        return candidate


def _name_key(name: str) -> str:
    return name.strip().casefold()


def _check_index(index: int, entries: tuple, kind: str) -> None:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(entries):
        raise NotFound(f"No {kind} entry at index {index}")


def _replace_at(items: tuple, index: int, item) -> tuple:
    return items[:index] + (item,) + items[index + 1:]
