import pytest

from models import BalanceByType
from projections.withdrawal_engine import (
    WITHDRAWAL_ORDERS,
    WithdrawalEngine,
    withdraw_from_accounts,
)


@pytest.fixture
def balances():
    return BalanceByType(tax_deferred=100_000.0, tax_free=50_000.0, taxable=30_000.0)


def test_typical_order_drains_taxable_first(balances):
    result = WithdrawalEngine().withdraw(40_000, balances)
    assert result.withdrawals.taxable == 30_000
    assert result.withdrawals.tax_deferred == 10_000
    assert result.withdrawals.tax_free == 0
    assert result.shortfall == 0


def test_lower_rmds_order_drains_tax_deferred_first(balances):
    result = WithdrawalEngine("lower_rmds").withdraw(40_000, balances)
    assert result.withdrawals.tax_deferred == 40_000
    assert result.withdrawals.taxable == 0


def test_custom_order(balances):
    engine = WithdrawalEngine(order=("tax_free", "taxable", "tax_deferred"))
    result = engine.withdraw(60_000, balances)
    assert result.withdrawals.tax_free == 50_000
    assert result.withdrawals.taxable == 10_000


def test_shortfall_when_accounts_run_dry(balances):
    result = WithdrawalEngine().withdraw(200_000, balances)
    assert result.withdrawals.total == pytest.approx(180_000)
    assert result.shortfall == pytest.approx(20_000)


def test_negative_need_withdraws_nothing(balances):
    result = withdraw_from_accounts(-5_000, balances)
    assert result.withdrawals.total == 0
    assert result.shortfall == 0


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValueError, match="Unknown withdrawal strategy"):
        WithdrawalEngine("yolo")


def test_order_must_cover_each_category():
    with pytest.raises(ValueError):
        WithdrawalEngine(order=("taxable", "taxable", "tax_free"))


def test_rmd_counts_toward_need(balances):
    result = WithdrawalEngine().withdraw(15_000, balances, rmd_required=10_000)
    # RMD first, then the typical cascade for the remainder
    assert result.withdrawals.tax_deferred == 10_000
    assert result.withdrawals.taxable == 5_000
    assert result.rmd_excess == 0
    assert result.spent == pytest.approx(15_000)


def test_rmd_beyond_need_is_reported_as_excess(balances):
    result = WithdrawalEngine().withdraw(4_000, balances, rmd_required=10_000)
    assert result.withdrawals.tax_deferred == 10_000
    assert result.withdrawals.taxable == 0
    assert result.rmd_excess == pytest.approx(6_000)
    assert result.spent == pytest.approx(4_000)


def test_rmd_is_capped_by_tax_deferred_balance():
    balances = BalanceByType(tax_deferred=3_000.0, taxable=10_000.0)
    result = WithdrawalEngine().withdraw(0, balances, rmd_required=10_000)
    assert result.rmd_taken == 3_000
    assert result.rmd_excess == 3_000


@pytest.mark.parametrize("strategy", sorted(WITHDRAWAL_ORDERS))
def test_rmd_floor_holds_for_every_strategy(strategy, balances):
    result = WithdrawalEngine(strategy).withdraw(20_000, balances, rmd_required=8_000)
    assert result.withdrawals.tax_deferred >= 8_000
    assert result.spent == pytest.approx(20_000)
