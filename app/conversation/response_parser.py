# app/conversation/response_parser.py
"""
Response Schema Validator
Checks the text generator's raw output against the five-field payload
and produces a deterministic fallback when it does not conform.

Validation never raises: every failure is reported through
ValidationResult.error (first failure only).
"""

import re
import json
import math
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from app.conversation.models import (
    ChatbotJsonResponse,
    CollectedData,
    CompletionStats,
    ConversationStage,
    NextQuestionKey,
    ValidationResult
)

logger = logging.getLogger(__name__)


REQUIRED_FIELDS = (
    "conversation_stage",
    "data_collected",
    "next_question_key",
    "assistant_message",
    "is_final_recommendation",
)

STRING_FIELDS = ("origin_name", "origin_iata", "destination_name", "destination_iata", "purpose")
LIST_FIELDS = ("activities", "availability_months", "hobbies")

# Fields counted by completion stats, in question order
PROFILE_FIELDS = (
    "origin_name",
    "origin_iata",
    "budget_in_brl",
    "passenger_composition",
    "availability_months",
    "activities",
    "purpose",
    "hobbies",
)

FALLBACK_MESSAGE = "Desculpe, houve um problema. Pode repetir sua resposta?"
EMPTY_MESSAGE_REPLACEMENT = "Como posso ajudá-lo?"

_STAGE_VALUES = {stage.value for stage in ConversationStage}
_QUESTION_VALUES = {key.value for key in NextQuestionKey}

# Leaked quick-reply structures, e.g. [{"label":"1 adulto","value":"1"}]
_OPTION_ARRAY_RE = re.compile(
    r'\[\s*\{[^}]*["\']?label["\']?\s*:\s*["\'][^"\']*["\'][^}]*\}[^\]]*\]', re.IGNORECASE
)
_OPTION_OBJECT_RE = re.compile(
    r'\{[^}]*["\']?label["\']?\s*:\s*["\'][^"\']*["\'][^}]*\}', re.IGNORECASE
)
_OPTION_TAIL_RE = re.compile(
    r'["\'][^"\']*["\']\s*,\s*["\']?value["\']?\s*:\s*["\'][^"\']*["\']\s*\}', re.IGNORECASE
)
_UNICODE_ESCAPE_RE = re.compile(r'\\u([0-9a-fA-F]{4})')


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


class ResponseParser:
    """
    Validates generator payloads and builds fallbacks.
    Stateless; a single instance can be shared.
    """

    # ============================================================
    # SANITIZING
    # ============================================================

    @staticmethod
    def sanitize(raw_text: str) -> str:
        """Strip incidental formatting: null bytes, code fences, "JSON:" prefixes"""
        text = raw_text.replace("\u0000", "")
        text = re.sub(r"^\s*```(?:json)?\s*", "", text, flags=re.IGNORECASE | re.MULTILINE)
        text = re.sub(r"\s*```\s*$", "", text, flags=re.MULTILINE)
        text = re.sub(r"^\s*Here'?s?\s+the\s+JSON\s*:?\s*", "", text, flags=re.IGNORECASE)
        text = re.sub(r"^\s*JSON\s*:?\s*", "", text, flags=re.IGNORECASE)
        return text.strip()

    @staticmethod
    def sanitize_assistant_message(message: str) -> str:
        """
        Remove quick-reply JSON fragments and literal unicode escapes
        that leak into the assistant text.
        """
        sanitized = _UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), message)
        # Join surrogate pairs (escaped emoji); lone halves become U+FFFD
        sanitized = sanitized.encode("utf-16", "surrogatepass").decode("utf-16", "replace")

        if "label" not in sanitized.lower():
            return sanitized.strip() or EMPTY_MESSAGE_REPLACEMENT

        sanitized = _OPTION_ARRAY_RE.sub("", sanitized)
        sanitized = _OPTION_OBJECT_RE.sub("", sanitized)
        sanitized = _OPTION_TAIL_RE.sub("", sanitized)
        sanitized = re.sub(r'\{\s*["\']?label["\']?\s*:\s*["\'][^"\']*["\']', "", sanitized, flags=re.IGNORECASE)

        # Orphan separators and brackets left at the edges
        sanitized = re.sub(r",\s*,", ",", sanitized)
        sanitized = re.sub(r"^[\s\}\],\[\{]+", "", sanitized)
        sanitized = re.sub(r"[\s\[\{,\]\}]+$", "", sanitized)
        sanitized = re.sub(r"\s+", " ", sanitized).strip()

        if len(sanitized) < 5:
            logger.warning(f"Assistant message empty after sanitizing: {message[:100]!r}")
            return EMPTY_MESSAGE_REPLACEMENT

        if sanitized != message:
            logger.debug(f"Assistant message sanitized: {message[:100]!r} -> {sanitized[:100]!r}")

        return sanitized

    # ============================================================
    # VALIDATION
    # ============================================================

    def validate(self, raw_text: str) -> ValidationResult:
        """
        Validate raw generator output.

        Args:
            raw_text: Text exactly as returned by the generator

        Returns:
            ValidationResult; parsed_data is set only when is_valid
        """
        cleaned = self.sanitize(raw_text or "")

        try:
            payload = json.loads(cleaned, strict=False)
        except json.JSONDecodeError as e:
            return self._invalid(f"Response is not valid JSON: {e.msg}")

        if not isinstance(payload, dict):
            return self._invalid("Response must be a JSON object")

        for field in REQUIRED_FIELDS:
            if field not in payload:
                return self._invalid(f"Missing required field: {field}")

        stage = payload["conversation_stage"]
        if not isinstance(stage, str) or stage not in _STAGE_VALUES:
            return self._invalid(f"Invalid conversation_stage: {stage!r}")

        next_key = payload["next_question_key"]
        if next_key is not None and (not isinstance(next_key, str) or next_key not in _QUESTION_VALUES):
            return self._invalid(f"Invalid next_question_key: {next_key!r}")

        if not isinstance(payload["assistant_message"], str):
            return self._invalid("assistant_message must be a string")

        if not isinstance(payload["is_final_recommendation"], bool):
            return self._invalid("is_final_recommendation must be a boolean")

        data_error = self._check_collected_data(payload["data_collected"])
        if data_error:
            return self._invalid(data_error)

        try:
            collected = CollectedData.model_validate(payload["data_collected"])
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            return self._invalid(f"Invalid data_collected.{location}: {first['msg']}")

        if payload["is_final_recommendation"] and not (
            collected.destination_name and collected.destination_iata
        ):
            return self._invalid("Final recommendation requires destination_name and destination_iata")

        if "button_options" in payload:
            logger.debug("Ignoring button_options from generator response")

        parsed = ChatbotJsonResponse(
            conversation_stage=ConversationStage(stage),
            data_collected=collected,
            next_question_key=NextQuestionKey(next_key) if next_key else None,
            assistant_message=self.sanitize_assistant_message(payload["assistant_message"]),
            is_final_recommendation=payload["is_final_recommendation"]
        )
        return ValidationResult(is_valid=True, parsed_data=parsed)

    @staticmethod
    def _check_collected_data(data: Any) -> Optional[str]:
        """Shape checks pydantic's lax mode would otherwise coerce"""
        if not isinstance(data, dict):
            return "data_collected must be an object"

        for field in CollectedData.field_names():
            if field not in data:
                return f"Missing field in data_collected: {field}"

        for field in STRING_FIELDS:
            if data[field] is not None and not isinstance(data[field], str):
                return f"{field} must be a string or null"

        for field in LIST_FIELDS:
            if data[field] is not None and not _is_string_list(data[field]):
                return f"{field} must be a list of strings or null"

        budget = data["budget_in_brl"]
        if budget is not None and (not _is_number(budget) or budget < 0):
            return "budget_in_brl must be a non-negative number or null"

        composition = data["passenger_composition"]
        if composition is not None:
            return ResponseParser._check_composition(composition)

        return None

    @staticmethod
    def _check_composition(composition: Any) -> Optional[str]:
        if not isinstance(composition, dict):
            return "passenger_composition must be an object or null"

        adults = composition.get("adults")
        if not isinstance(adults, int) or isinstance(adults, bool) or adults < 1:
            return "passenger_composition.adults must be an integer >= 1"

        children = composition.get("children")
        if children is None:
            return None
        if not isinstance(children, list):
            return "passenger_composition.children must be a list or null"

        for index, child in enumerate(children):
            if not isinstance(child, dict):
                return f"passenger_composition.children[{index}] must be an object"
            age = child.get("age")
            if not isinstance(age, int) or isinstance(age, bool) or not 0 <= age <= 17:
                return f"passenger_composition.children[{index}].age must be an integer 0-17"
            if not isinstance(child.get("isPaying"), bool):
                return f"passenger_composition.children[{index}].isPaying must be a boolean"

        return None

    @staticmethod
    def _invalid(error: str) -> ValidationResult:
        logger.warning(f"Generator response rejected: {error}")
        return ValidationResult(is_valid=False, error=error)

    # ============================================================
    # FALLBACK & PROGRESS
    # ============================================================

    def generate_fallback(
        self,
        current_stage: ConversationStage,
        collected_data: CollectedData
    ) -> ChatbotJsonResponse:
        """
        Deterministic response used when validation fails.
        Keeps the prior stage and data; never exposes diagnostics.
        """
        return ChatbotJsonResponse(
            conversation_stage=current_stage,
            data_collected=collected_data,
            next_question_key=self.determine_next_question(collected_data),
            assistant_message=FALLBACK_MESSAGE,
            is_final_recommendation=False
        )

    @staticmethod
    def determine_next_question(data: CollectedData) -> Optional[NextQuestionKey]:
        """First unmet required field in question order"""
        if not data.origin_name or not data.origin_iata:
            return NextQuestionKey.ORIGIN
        if data.budget_in_brl is None:
            return NextQuestionKey.BUDGET
        if data.passenger_composition is None:
            return NextQuestionKey.PASSENGERS
        if not data.availability_months:
            return NextQuestionKey.AVAILABILITY
        if not data.activities:
            return NextQuestionKey.ACTIVITIES
        if not data.purpose:
            return NextQuestionKey.PURPOSE
        return None

    def is_ready_for_recommendation(self, data: CollectedData) -> bool:
        return self.determine_next_question(data) is None

    @staticmethod
    def get_completion_stats(data: CollectedData) -> CompletionStats:
        missing = []
        for field in PROFILE_FIELDS:
            value = getattr(data, field)
            if value is None or (isinstance(value, list) and not value):
                missing.append(field)

        total = len(PROFILE_FIELDS)
        completed = total - len(missing)

        return CompletionStats(
            completed=completed,
            total=total,
            percentage=int(completed * 100 / total + 0.5),
            missing_fields=missing
        )


# Shared instance
response_parser = ResponseParser()


__all__ = [
    "ResponseParser",
    "response_parser",
    "FALLBACK_MESSAGE",
]
