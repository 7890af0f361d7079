"""
Project and portfolio cost aggregation.

Totals are recomputed from line items on every call and are never stored on
the project, so they cannot go stale after an entry changes.
"""

from dataclasses import dataclass
from typing import Optional

from .ledger import Ledger, Project


@dataclass(frozen=True)
class ProjectTotals:
    """Derived cost breakdown for a single project."""
    labor_cost: float
    material_cost: float
    subtotal: float
    overhead_amount: float
    total: float
    margin: Optional[float]  # None when the project has no sale price
    sale_price: Optional[float] = None

    @property
    def margin_percent(self) -> Optional[float]:
        """Margin as a percentage of the sale price."""
        if self.margin is None or not self.sale_price:
            return None
        return self.margin / self.sale_price * 100


@dataclass(frozen=True)
class PortfolioTotals:
    """Totals summed across every project in a ledger."""
    total_labor: float
    total_material: float
    total_overhead: float
    grand_total: float
    project_count: int
    total_sale_price: float = 0.0
    total_margin: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.grand_total == 0


def aggregate_project(project: Project) -> ProjectTotals:
    """Compute labor, material, overhead, total and margin for a project.

    Args:
        project: Project to aggregate

    Returns:
        ProjectTotals; margin is None when no sale price is set, which is
        distinct from a project that exactly breaks even
    """
    labor_cost = sum(entry.cost_for_hours for entry in project.labor_entries)
    material_cost = sum(entry.total for entry in project.material_entries)
    subtotal = labor_cost + material_cost
    overhead_amount = subtotal * project.overhead_percent / 100
    total = subtotal + overhead_amount

    margin = None
    if project.sale_price is not None:
        margin = project.sale_price - total

    return ProjectTotals(
        labor_cost=float(labor_cost),
        material_cost=float(material_cost),
        subtotal=float(subtotal),
        overhead_amount=float(overhead_amount),
        total=float(total),
        margin=margin,
        sale_price=project.sale_price
    )


def aggregate_portfolio(ledger: Ledger) -> PortfolioTotals:
    """Sum project aggregates across the whole ledger.

    Returns zeros for an empty ledger; callers decide whether to display it.
    """
    total_labor = 0.0
    total_material = 0.0
    total_overhead = 0.0
    grand_total = 0.0
    total_sale_price = 0.0
    total_margin = 0.0

    for project in ledger.projects:
        totals = aggregate_project(project)
        total_labor += totals.labor_cost
        total_material += totals.material_cost
        total_overhead += totals.overhead_amount
        grand_total += totals.total
        if totals.margin is not None:
            total_sale_price += totals.sale_price
            total_margin += totals.margin

    return PortfolioTotals(
        total_labor=total_labor,
        total_material=total_material,
        total_overhead=total_overhead,
        grand_total=grand_total,
        project_count=len(ledger.projects),
        total_sale_price=total_sale_price,
        total_margin=total_margin
    )
