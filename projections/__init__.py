# projections/__init__.py

# The simulator is the entry point; the analyzers below all rerun it.
from .errors import InvariantViolation, ProjectionError, ValidationError
from .simulator import ProjectionSimulator, run_projection
from .withdrawal_engine import WithdrawalEngine

# Analyzers used by the insights and plan pages
from .sensitivity import analyze_sensitivity, identify_low_friction_wins, identify_sensitive_assumptions
from .depletion_feedback import calculate_depletion_feedback, calculate_reserve_amount
from .reserve_runway import UNLIMITED_RUNWAY, calculate_reserve_runway
from .income_floor import calculate_income_floor
from .spending_comparison import calculate_spending_comparison
from .staleness import check_projection_staleness
from .status import get_retirement_status
from .warnings import generate_projection_warnings
