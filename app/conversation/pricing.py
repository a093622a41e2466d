# app/conversation/pricing.py
"""
Passenger Pricing Calculator
Splits the traveler's total budget across the group.

Pricing rule: every passenger pays a seat, children included.
The composition validator still checks the isPaying flags separately,
but the flags never change the split.
"""

import logging
from typing import Optional

from app.conversation.models import (
    PassengerComposition,
    PricingCalculation,
    BudgetValidationResult
)
from app.core.config import settings

logger = logging.getLogger(__name__)


def calculate_pricing(
    total_budget: float,
    composition: PassengerComposition
) -> PricingCalculation:
    """
    Compute per-person budget for a passenger composition.

    Args:
        total_budget: Group budget in BRL
        composition: Adults plus optional children

    Returns:
        PricingCalculation (per-person value is not rounded)
    """
    if total_budget < 0:
        raise ValueError(f"Budget must be non-negative, got {total_budget}")

    total_passengers = composition.total_passengers
    paying_passengers = total_passengers
    non_paying_passengers = total_passengers - paying_passengers

    per_person_budget = total_budget / paying_passengers

    logger.debug(
        f"Pricing: R$ {total_budget} for {total_passengers} passengers "
        f"({paying_passengers} paying) -> R$ {per_person_budget:.2f} each"
    )

    return PricingCalculation(
        total_passengers=total_passengers,
        paying_passengers=paying_passengers,
        non_paying_passengers=non_paying_passengers,
        per_person_budget=per_person_budget,
        total_budget=total_budget
    )


def validate_budget(
    total_budget: float,
    composition: PassengerComposition,
    minimum_per_person: Optional[float] = None
) -> BudgetValidationResult:
    """
    Check the per-person budget against a minimum.
    Exactly the minimum is accepted.
    """
    if minimum_per_person is None:
        minimum_per_person = settings.MIN_BUDGET_PER_PERSON

    pricing = calculate_pricing(total_budget, composition)

    if pricing.per_person_budget < minimum_per_person:
        message = (
            f"Orçamento insuficiente. Mínimo de R$ {minimum_per_person:.2f} "
            f"por passageiro pagante. Você tem R$ {pricing.per_person_budget:.2f} por pessoa."
        )
        logger.info(f"Budget below minimum: {pricing.per_person_budget:.2f} < {minimum_per_person:.2f}")
        return BudgetValidationResult(is_valid=False, message=message)

    return BudgetValidationResult(is_valid=True)


__all__ = [
    "calculate_pricing",
    "validate_budget",
]
