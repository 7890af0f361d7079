"""
Per-project report data.

Supplies the rows that document generators (CSV, PDF) print. Amounts come
from the entries and the project aggregate; nothing is recomputed here.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .aggregation import ProjectTotals, aggregate_project
from .ledger import Project

LABOR = "Labor"
MATERIAL = "Material"


@dataclass(frozen=True)
class ReportLine:
    """One line item of a project report."""
    kind: str
    name: str
    detail: str
    amount: float


@dataclass(frozen=True)
class ProjectReport:
    """Line items and totals of one project, ready for rendering."""
    project_name: str
    overhead_percent: float
    lines: List[ReportLine]
    totals: ProjectTotals

    def summary_rows(self, include_subtotal: bool = True) -> List[Tuple[str, float]]:
        """Footer rows; the margin row is present only with a sale price.

        Args:
            include_subtotal: Whether to list the pre-overhead subtotal;
                file exports leave it out
        """
        rows = [
            ("Labor total", self.totals.labor_cost),
            ("Material total", self.totals.material_cost),
        ]
        if include_subtotal:
            rows.append(("Subtotal", self.totals.subtotal))
        rows.append(("Total with overhead", self.totals.total))
        if self.totals.margin is not None:
            rows.append(("Gross margin", self.totals.margin))
        return rows


def build_project_report(project: Project) -> ProjectReport:
    """Build the report rows for a project."""
    lines = []
    for entry in project.labor_entries:
        lines.append(ReportLine(
            kind=LABOR,
            name=entry.name,
            detail=(
                f"Net {entry.net_monthly_wage:.2f}/month, gross {entry.gross_wage:.2f}, "
                f"charges {entry.employer_charges:.2f}, employer cost "
                f"{entry.employer_monthly_cost:.2f}/month x {entry.hours_on_project:g}h"
            ),
            amount=entry.cost_for_hours
        ))
    for entry in project.material_entries:
        lines.append(ReportLine(
            kind=MATERIAL,
            name=entry.name,
            detail=f"{entry.quantity:g} x {entry.unit_price:.2f}",
            amount=entry.total
        ))

    return ProjectReport(
        project_name=project.name,
        overhead_percent=project.overhead_percent,
        lines=lines,
        totals=aggregate_project(project)
    )
