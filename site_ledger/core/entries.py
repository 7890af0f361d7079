"""
Labor and material line items.

Entries are built only through the derive functions, so derived totals can
never drift from the inputs they were computed from.
"""

from dataclasses import dataclass
from datetime import date

from .validation import require_date, require_name, require_non_negative, require_positive
from .wages import WageConverter


@dataclass(frozen=True)
class LaborInput:
    """Caller-supplied fields of a labor entry."""
    name: str
    net_monthly_wage: float
    hours_on_project: float
    recorded_date: date


@dataclass(frozen=True)
class MaterialInput:
    """Caller-supplied fields of a material entry."""
    name: str
    unit_price: float
    quantity: float
    recorded_date: date


@dataclass(frozen=True)
class LaborEntry:
    """One worker's time on a project, with employer cost derived."""
    name: str
    net_monthly_wage: float
    hours_on_project: float
    recorded_date: date
    gross_wage: float
    employer_monthly_cost: float
    employer_charges: float
    cost_for_hours: float

    def to_input(self) -> LaborInput:
        return LaborInput(
            name=self.name,
            net_monthly_wage=self.net_monthly_wage,
            hours_on_project=self.hours_on_project,
            recorded_date=self.recorded_date
        )


@dataclass(frozen=True)
class MaterialEntry:
    """A purchased material line."""
    name: str
    unit_price: float
    quantity: float
    recorded_date: date
    total: float

    def to_input(self) -> MaterialInput:
        return MaterialInput(
            name=self.name,
            unit_price=self.unit_price,
            quantity=self.quantity,
            recorded_date=self.recorded_date
        )


def derive_labor_entry(data: LaborInput, converter: WageConverter) -> LaborEntry:
    """Derive a labor entry from its inputs.

    The hourly cost is the monthly employer cost spread over the configured
    hours per month, multiplied by the hours worked on the project.

    Args:
        data: Labor input fields
        converter: Wage converter carrying the rate regime

    Returns:
        Fully derived LaborEntry

    Raises:
        InvalidInput: If the name is empty, or the wage or hours are not
            finite and > 0
    """
    name = require_name(data.name)
    hours = require_positive(data.hours_on_project, "hours_on_project")
    require_date(data.recorded_date, "recorded_date")
    wages = converter.convert(data.net_monthly_wage)

    return LaborEntry(
        name=name,
        net_monthly_wage=float(data.net_monthly_wage),
        hours_on_project=hours,
        recorded_date=data.recorded_date,
        gross_wage=wages.gross_wage,
        employer_monthly_cost=wages.employer_cost,
        employer_charges=wages.employer_charges,
        cost_for_hours=converter.hourly_cost(wages.employer_cost) * hours
    )


def derive_material_entry(data: MaterialInput) -> MaterialEntry:
    """Derive a material entry from its inputs.

    Raises:
        InvalidInput: If the name is empty, or price or quantity are
            negative or not finite
    """
    name = require_name(data.name)
    unit_price = require_non_negative(data.unit_price, "unit_price")
    quantity = require_non_negative(data.quantity, "quantity")
    require_date(data.recorded_date, "recorded_date")

    return MaterialEntry(
        name=name,
        unit_price=unit_price,
        quantity=quantity,
        recorded_date=data.recorded_date,
        total=unit_price * quantity
    )
