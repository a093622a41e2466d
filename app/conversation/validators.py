# app/conversation/validators.py
"""
Input Validation for the travel-advisor conversation.
Passenger composition rules and user-input sanitizing.
Validators return structured results; they never raise on bad data.
"""

import re
import logging
from typing import Any, Dict, List, Optional, Union

from app.conversation.models import PassengerComposition, PassengerValidationResult
from app.core.config import settings

logger = logging.getLogger(__name__)


# ============================================================
# ERROR MESSAGES (shown to the traveler, Portuguese)
# ============================================================

ERROR_MESSAGES = {
    "NO_ADULTS": "É necessário pelo menos um adulto na viagem",
    "INVALID_CHILD_AGE_NEGATIVE": "Idade da criança não pode ser negativa",
    "INVALID_CHILD_AGE_TOO_HIGH": "Idade da criança deve ser menor que 18 anos",
    "TOO_MANY_INFANTS": "Número de bebês não pode exceder o número de adultos",
    "MISSING_PASSENGER_COMPOSITION": "Composição de passageiros não informada",
    "TOO_MANY_PASSENGERS": "Número máximo de passageiros excedido (máximo: 9)",
    "NEGATIVE_CHILDREN": "Número de crianças não pode ser negativo",
    "NEGATIVE_INFANTS": "Número de bebês não pode ser negativo",
}

# Children up to this age travel on an adult's lap
INFANT_MAX_AGE = 2


class PassengerValidator:
    """Validates passenger composition against airline booking rules"""

    @staticmethod
    def validate_composition(
        composition: Optional[Union[PassengerComposition, Dict[str, Any]]]
    ) -> PassengerValidationResult:
        """
        Validate a passenger composition.

        Accepts the model or its raw dict form (camelCase or snake_case
        child keys) so unparsed client payloads can be checked too.

        Returns:
            PassengerValidationResult with every violated rule
        """
        if composition is None:
            return PassengerValidationResult(
                is_valid=False,
                errors=[ERROR_MESSAGES["MISSING_PASSENGER_COMPOSITION"]]
            )

        if isinstance(composition, PassengerComposition):
            adults = composition.adults
            children = [
                {"age": c.age, "isPaying": c.is_paying}
                for c in (composition.children or [])
            ]
        else:
            adults = composition.get("adults") or 0
            children = composition.get("children") or []

        errors: List[str] = []

        if adults < 1:
            errors.append(ERROR_MESSAGES["NO_ADULTS"])

        if adults + len(children) > settings.MAX_PASSENGERS:
            errors.append(ERROR_MESSAGES["TOO_MANY_PASSENGERS"])

        if children:
            errors.extend(PassengerValidator._validate_children(children))

            infant_count = sum(1 for c in children if c.get("age", 0) <= INFANT_MAX_AGE)
            if infant_count > adults:
                errors.append(ERROR_MESSAGES["TOO_MANY_INFANTS"])

        if errors:
            logger.debug(f"Passenger composition invalid: {errors}")

        return PassengerValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def _validate_children(children: List[Dict[str, Any]]) -> List[str]:
        errors = []

        for index, child in enumerate(children, start=1):
            age = child.get("age", 0)
            is_paying = child.get("isPaying", child.get("is_paying"))

            if age < 0:
                errors.append(f"Criança {index}: {ERROR_MESSAGES['INVALID_CHILD_AGE_NEGATIVE']}")
            elif age > 17:
                errors.append(f"Criança {index}: {ERROR_MESSAGES['INVALID_CHILD_AGE_TOO_HIGH']}")

            if is_paying != (age > INFANT_MAX_AGE):
                errors.append(f"Criança {index}: Flag isPaying incorreta para idade {age} anos")

        return errors

    @staticmethod
    def validate_search_counts(
        adults: int,
        children: int = 0,
        infants: int = 0
    ) -> PassengerValidationResult:
        """Validate passenger counts in the shape flight-offer searches use"""
        errors = []

        if adults < 1:
            errors.append(ERROR_MESSAGES["NO_ADULTS"])
        if infants > adults:
            errors.append(ERROR_MESSAGES["TOO_MANY_INFANTS"])
        if children < 0:
            errors.append(ERROR_MESSAGES["NEGATIVE_CHILDREN"])
        if infants < 0:
            errors.append(ERROR_MESSAGES["NEGATIVE_INFANTS"])
        if adults + children + infants > settings.MAX_PASSENGERS:
            errors.append(ERROR_MESSAGES["TOO_MANY_PASSENGERS"])

        return PassengerValidationResult(is_valid=not errors, errors=errors)


class InputSanitizer:
    """Sanitizes and normalizes user input"""

    @staticmethod
    def sanitize_text_input(text: str, max_length: Optional[int] = None) -> str:
        """
        Sanitize a free-form chat message.
        Removes control characters (keeps newlines and tabs), limits length.
        """
        if not text:
            return ""

        if max_length is None:
            max_length = settings.MAX_MESSAGE_LENGTH

        text = text.strip()
        text = re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', text)
        return text[:max_length]


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    'ERROR_MESSAGES',
    'PassengerValidator',
    'InputSanitizer',
]
