# withdrawal_engine.py

from dataclasses import dataclass
from typing import Dict, Protocol, Sequence, Tuple

from models import BalanceByType, TAX_CATEGORIES

# Handles logic for prioritizing withdrawals across tax categories
#
WITHDRAWAL_ORDERS: Dict[str, Tuple[str, ...]] = {
    # Preserve tax-free growth longest
    "typical": ("taxable", "tax_deferred", "tax_free"),
    # Draw down tax-deferred early to shrink future RMDs
    "lower_rmds": ("tax_deferred", "taxable", "tax_free"),
    "preserve_taxable": ("tax_deferred", "tax_free", "taxable"),
}
DEFAULT_STRATEGY = "typical"


@dataclass(frozen=True)
class WithdrawalResult:
    withdrawals: BalanceByType
    shortfall: float = 0.0
    rmd_taken: float = 0.0
    # RMD dollars beyond the year's need; re-deposited to taxable, not spent
    rmd_excess: float = 0.0

    @property
    def total_withdrawn(self) -> float:
        return self.withdrawals.total

    @property
    def spent(self) -> float:
        return self.withdrawals.total - self.rmd_excess


class WithdrawalPolicy(Protocol):
    def withdraw(
        self, amount_needed: float, balances: BalanceByType, rmd_required: float = 0.0
    ) -> WithdrawalResult:
        ...


def withdraw_from_accounts(
    amount_needed: float,
    balances: BalanceByType,
    order: Sequence[str] = WITHDRAWAL_ORDERS[DEFAULT_STRATEGY],
) -> WithdrawalResult:
    """
    Plain ordered cascade: take as much as possible from each category in
    `order` until the need is met. Whatever cannot be covered is the shortfall.
    """
    taken = {category: 0.0 for category in TAX_CATEGORIES}
    remaining = max(0.0, amount_needed)

    for category in order:
        if remaining <= 0:
            break
        available = balances.get(category)
        if available <= 0:
            continue
        amt = min(available, remaining)
        taken[category] += amt
        remaining -= amt

    return WithdrawalResult(withdrawals=BalanceByType(**taken), shortfall=remaining)


class WithdrawalEngine:
    """
    Handles logic for prioritizing withdrawals based on tax strategy, with
    the RMD floor on tax-deferred funds applied regardless of the order.
    """
    def __init__(self, strategy: str = DEFAULT_STRATEGY, order: Sequence[str] = None):
        if order is None:
            if strategy not in WITHDRAWAL_ORDERS:
                raise ValueError(
                    f"Unknown withdrawal strategy '{strategy}'. "
                    f"Expected one of {sorted(WITHDRAWAL_ORDERS)}"
                )
            order = WITHDRAWAL_ORDERS[strategy]
        if sorted(order) != sorted(TAX_CATEGORIES):
            raise ValueError(f"Withdrawal order must list each tax category once: {order}")
        self.strategy = strategy
        self.order = tuple(order)

    def _get_withdrawal_order(self) -> Tuple[str, ...]:
        return self.order

    def withdraw(
        self, amount_needed: float, balances: BalanceByType, rmd_required: float = 0.0
    ) -> WithdrawalResult:
        """
        Withdraws amount_needed following the configured order.

        The RMD is taken from tax-deferred first and counts toward the need;
        RMD dollars beyond the need are reported as rmd_excess for the
        caller to route into taxable savings.
        """
        need = max(0.0, amount_needed)
        rmd = min(max(0.0, rmd_required), balances.tax_deferred)

        applied_to_need = min(rmd, need)
        rmd_excess = rmd - applied_to_need
        remaining_need = need - applied_to_need

        after_rmd = BalanceByType(
            tax_deferred=balances.tax_deferred - rmd,
            tax_free=balances.tax_free,
            taxable=balances.taxable,
        )
        cascade = withdraw_from_accounts(remaining_need, after_rmd, self._get_withdrawal_order())

        withdrawals = BalanceByType(
            tax_deferred=cascade.withdrawals.tax_deferred + rmd,
            tax_free=cascade.withdrawals.tax_free,
            taxable=cascade.withdrawals.taxable,
        )
        return WithdrawalResult(
            withdrawals=withdrawals,
            shortfall=cascade.shortfall,
            rmd_taken=withdrawals.tax_deferred,
            rmd_excess=rmd_excess,
        )
