# config/projection_assumptions.py
# Reasonable defaults; callers can override any of them per request

# =============================================================================
# Return & inflation
# =============================================================================
# Nominal expected return by risk tolerance
default_return_rates = {
    "conservative": 0.04,   # bond-heavy
    "moderate": 0.06,       # balanced 60/40
    "aggressive": 0.08,     # equity-heavy
}
default_risk_tolerance = "moderate"

default_inflation_rate = 0.025
default_healthcare_inflation_rate = 0.05   # historically ~5-6%, above general CPI
default_contribution_growth_rate = 0.0     # flat contributions

# =============================================================================
# Horizon
# =============================================================================
default_max_age = 90
default_ss_age = 67

# =============================================================================
# Contributions
# =============================================================================
default_contribution_allocation = {
    "tax_deferred": 60.0,
    "tax_free": 30.0,
    "taxable": 10.0,
}

# Investment account type -> tax category
account_tax_category = {
    "401k": "tax_deferred",
    "IRA": "tax_deferred",
    "Roth_IRA": "tax_free",
    "Brokerage": "taxable",
    "Cash": "taxable",
    "Other": "taxable",
}

# =============================================================================
# Healthcare (today's dollars, Fidelity retiree cost estimates)
# =============================================================================
healthcare_costs_by_age = {
    "under65": 8_000,    # pre-Medicare (ACA marketplace or employer)
    "65to74": 6_500,     # early Medicare + supplements
    "75plus": 12_000,    # late retirement
}

# =============================================================================
# Expenses & debt
# =============================================================================
max_expense_share_of_income = 0.80
default_debt_interest_rate = 0.05
debt_payoff_years = 10

# =============================================================================
# Social Security estimate (simplified SSA replacement tiers)
# =============================================================================
ss_replacement_tiers = [
    # (income ceiling, replacement rate)
    (30_000, 0.55),
    (80_000, 0.40),
    (float("inf"), 0.30),
]
ss_conservative_haircut = 0.20
ssa_max_monthly_benefit = 4_500

# =============================================================================
# Analytics thresholds
# =============================================================================
trajectory_tolerance_band = 0.05        # +/-5% counts as on track
sustainable_spending_iterations = 60    # bisection steps for depletion feedback
reserve_runway_max_years = 100
at_risk_runway_years = 20
rmd_warning_balance = 100_000
