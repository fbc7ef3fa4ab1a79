import json
from dataclasses import replace

from models import BalanceByType, DepletionTarget, IncomeStream, ReserveConfig
from projections import run_projection
from utils.serialization import (
    hash_projection_input,
    projection_input_from_dict,
    projection_input_to_dict,
    stored_projection,
)


def test_round_trip_through_json(base_input, social_security_stream, two_phase_config):
    inputs = replace(
        base_input,
        income_streams=(social_security_stream,),
        spending_phase_config=two_phase_config,
        depletion_target=DepletionTarget(
            enabled=True, target_age=85, reserve=ReserveConfig(type="absolute", amount=1e5, purposes=("legacy",))
        ),
        start_year=2030,
    )
    stored = json.loads(json.dumps(projection_input_to_dict(inputs)))
    assert projection_input_from_dict(stored) == inputs


def test_unknown_keys_are_ignored(base_input):
    stored = projection_input_to_dict(base_input)
    stored["schema_version"] = 3
    assert projection_input_from_dict(stored) == base_input


def test_hash_is_stable_and_order_independent(base_input, social_security_stream):
    pension = IncomeStream(id="pension", name="Pension", type="pension", annual_amount=1.0, start_age=65)
    a = replace(base_input, income_streams=(social_security_stream, pension))
    b = replace(base_input, income_streams=(pension, social_security_stream))

    assert hash_projection_input(a) == hash_projection_input(b)
    assert len(hash_projection_input(a)) == 64


def test_hash_changes_with_inputs(base_input):
    assert hash_projection_input(base_input) != hash_projection_input(replace(base_input, max_age=95))


def test_dict_and_input_hash_alike(base_input):
    assert hash_projection_input(projection_input_to_dict(base_input)) == hash_projection_input(base_input)


def test_stored_projection_is_json_ready(base_input):
    result = run_projection(base_input)
    stored = json.loads(json.dumps(stored_projection(base_input, result)))

    assert stored["input_hash"] == hash_projection_input(base_input)
    assert stored["assumptions"]["expected_return"] == 0.06
    assert stored["assumptions"]["retirement_age"] == 65
    assert len(stored["records"]) == 51
    assert stored["records"][0]["balance_by_type"]["taxable"] == result.records[0].balance_by_type.taxable
    assert stored["summary"]["ending_balance"] == result.summary.ending_balance
    assert projection_input_from_dict(stored["inputs"]) == base_input


def test_int_and_float_amounts_hash_alike(base_input):
    as_int = replace(base_input, annual_contribution=20000, balances_by_type=BalanceByType(taxable=100000))
    as_float = replace(base_input, annual_contribution=20000.0, balances_by_type=BalanceByType(taxable=100000.0))
    assert as_int == as_float
    assert hash_projection_input(as_int) == hash_projection_input(as_float)


def test_float_ages_hash_like_whole_ages(base_input):
    assert hash_projection_input(replace(base_input, retirement_age=65.0)) == hash_projection_input(base_input)


def test_stored_hash_matches_stored_inputs(base_input):
    inputs = replace(base_input, balances_by_type=BalanceByType(tax_deferred=150000, taxable=100000))
    stored = json.loads(json.dumps(stored_projection(inputs, run_projection(inputs))))
    assert stored["input_hash"] == hash_projection_input(stored["inputs"])
