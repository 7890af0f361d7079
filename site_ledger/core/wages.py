"""
Wage conversion.

Turns a net monthly wage into the gross wage and the full monthly cost to
the employer, using the injected charge rates.
"""

from dataclasses import dataclass

from site_ledger.config.loader import RatesConfig

from .validation import require_positive


@dataclass(frozen=True)
class WageBreakdown:
    """Result of converting one net monthly wage."""
    gross_wage: float
    employer_cost: float
    employer_charges: float


class WageConverter:
    """Converts net wages to employer cost under a fixed rate regime."""

    def __init__(self, rates: RatesConfig):
        self.rates = rates

    def convert(self, net_monthly_wage: float) -> WageBreakdown:
        """Convert a net monthly wage.

        Args:
            net_monthly_wage: Take-home monthly pay

        Returns:
            WageBreakdown with gross wage, employer cost and employer charges

        Raises:
            InvalidInput: If the wage is not finite or is <= 0
        """
        net = require_positive(net_monthly_wage, "net_monthly_wage")

        gross_wage = net / (1 - self.rates.employee_charge_rate)
        employer_cost = gross_wage * (1 + self.rates.employer_charge_rate)

        return WageBreakdown(
            gross_wage=gross_wage,
            employer_cost=employer_cost,
            employer_charges=employer_cost - gross_wage
        )

    def hourly_cost(self, employer_cost: float) -> float:
        """Employer cost of one worked hour."""
        return employer_cost / self.rates.hours_per_month

    def __repr__(self) -> str:
        return f"WageConverter({self.rates!r})"
