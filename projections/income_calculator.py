# income_calculator.py
#
# Resolves named income streams (Social Security, pension, rental, annuity,
# part-time, other) into annual income for a given age
#

from typing import Dict, Iterable, List

from models import IncomeStream


def stream_income_at_age(stream: IncomeStream, age: int, inflation_rate: float) -> float:
    """
    Annual income from one stream at `age`.

    COLA streams grow from their own start age; non-COLA streams stay at the
    nominal amount and lose real value over time.
    """
    if not stream.is_active(age):
        return 0.0
    if stream.inflation_adjusted:
        return stream.annual_amount * (1 + inflation_rate) ** (age - stream.start_age)
    return stream.annual_amount


def calculate_total_income(
    streams: Iterable[IncomeStream],
    age: int,
    inflation_rate: float,
) -> float:
    """
    Calculates the total annual income from all streams active at `age`.

    Args:
        streams: Income streams from the projection input.
        age: Account holder's age for the year.
        inflation_rate: Annual COLA applied to inflation-adjusted streams.

    Returns:
        float: Combined annual income for the year.
    """
    total_income = 0.0
    for stream in streams:
        total_income += stream_income_at_age(stream, age, inflation_rate)
    return total_income


def calculate_guaranteed_income(
    streams: Iterable[IncomeStream],
    age: int,
    inflation_rate: float,
) -> float:
    """Same as calculate_total_income, restricted to guaranteed (non-market) streams."""
    return calculate_total_income(
        (s for s in streams if s.is_guaranteed), age, inflation_rate
    )


def income_schedule(
    streams: Iterable[IncomeStream],
    start_age: int,
    end_age: int,
    inflation_rate: float,
    guaranteed_only: bool = False,
) -> Dict[int, float]:
    """Age-indexed annual income for every age in [start_age, end_age]."""
    streams = [s for s in streams if s.is_guaranteed or not guaranteed_only]
    return {
        age: calculate_total_income(streams, age, inflation_rate)
        for age in range(start_age, end_age + 1)
    }


def has_guaranteed_income(streams: Iterable[IncomeStream]) -> bool:
    return any(s.is_guaranteed for s in streams)


def guaranteed_income_summary(streams: Iterable[IncomeStream]) -> Dict[str, object]:
    guaranteed: List[IncomeStream] = [s for s in streams if s.is_guaranteed]
    types: List[str] = []
    for s in guaranteed:
        if s.type not in types:
            types.append(s.type)
    return {
        "count": len(guaranteed),
        "total_annual": sum(s.annual_amount for s in guaranteed),
        "types": types,
    }
