"""Food label domain models and gateway outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

INVALID_INPUT = "invalid_input"
UNREADABLE_LABEL = "unreadable_label"
UPSTREAM_FAILURE = "upstream_failure"


def _as_number(value: Any) -> Optional[float]:
    """Coerce a model-provided calorie value into a number when possible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        text = str(value).strip().lower().replace("kcal", "").replace("cal", "").strip()
        number = float(text)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else number


def _as_strings(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Expected a list of strings, got {type(value).__name__}.")
    return [str(item).strip() for item in value if str(item).strip()]


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        key = value.lower()
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result


@dataclass
class NutritionFacts:
    """Nutrition panel values as printed on the label."""

    serving_size: str = ""
    calories: Optional[float] = None
    macros: Dict[str, Any] = field(default_factory=dict)
    other_nutrients: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "NutritionFacts":
        if not isinstance(payload, dict):
            return cls()
        macros = payload.get("macros")
        other = payload.get("otherNutrients")
        return cls(
            serving_size=str(payload.get("servingSize") or ""),
            calories=_as_number(payload.get("calories")),
            macros=dict(macros) if isinstance(macros, dict) else {},
            other_nutrients=dict(other) if isinstance(other, dict) else {},
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "servingSize": self.serving_size,
            "calories": self.calories,
            "macros": dict(self.macros),
            "otherNutrients": dict(self.other_nutrients),
        }


@dataclass
class LabelAnalysis:
    """Structured extraction of a single food label.

    Attributes:
        product_name: Product name, possibly empty.
        ingredients: Ingredients in the order printed on the package.
        nutrition_facts: Serving size, calories, macros and other nutrients.
        allergens: Distinct allergen names.
        certifications: Distinct certification names (organic, non-GMO, ...).
        expiry_date: Best-before or expiry text, possibly empty.
        confidence_scores: Field name mapped to a 0.0-1.0 confidence.
        is_error: True when the image could not be read as a food label.
        error_message: Human-readable explanation when `is_error` is set.
    """

    product_name: str = ""
    ingredients: List[str] = field(default_factory=list)
    nutrition_facts: NutritionFacts = field(default_factory=NutritionFacts)
    allergens: List[str] = field(default_factory=list)
    certifications: List[str] = field(default_factory=list)
    expiry_date: str = ""
    confidence_scores: Dict[str, float] = field(default_factory=dict)
    is_error: bool = False
    error_message: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "LabelAnalysis":
        """Build an analysis from the model's JSON object.

        Raises:
            ValueError: If the payload is not a JSON object.
        """
        if not isinstance(payload, dict):
            raise ValueError("Analysis payload must be a JSON object.")

        if payload.get("isError") or payload.get("error"):
            return cls(
                is_error=True,
                error_message=str(payload.get("error") or "Failed to analyze the food label"),
            )

        scores: Dict[str, float] = {}
        raw_scores = payload.get("confidenceScores")
        if isinstance(raw_scores, dict):
            for name, score in raw_scores.items():
                number = _as_number(score)
                if number is not None:
                    scores[str(name)] = min(max(float(number), 0.0), 1.0)

        return cls(
            product_name=str(payload.get("productName") or "").strip(),
            ingredients=_as_strings(payload.get("ingredients")),
            nutrition_facts=NutritionFacts.from_payload(payload.get("nutritionFacts")),
            allergens=_unique(_as_strings(payload.get("allergens"))),
            certifications=_unique(_as_strings(payload.get("certifications"))),
            expiry_date=str(payload.get("expiryDate") or "").strip(),
            confidence_scores=scores,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Render the analysis as the camelCase JSON returned to clients."""
        return {
            "productName": self.product_name,
            "ingredients": list(self.ingredients),
            "nutritionFacts": self.nutrition_facts.to_payload(),
            "allergens": list(self.allergens),
            "certifications": list(self.certifications),
            "expiryDate": self.expiry_date,
            "confidenceScores": dict(self.confidence_scores),
            "isError": self.is_error,
        }


@dataclass
class GatewayResult:
    """Explicit success/failure outcome returned by every gateway call."""

    success: bool
    value: Any = None
    error: Optional[str] = None
    details: Optional[str] = None
    kind: Optional[str] = None

    @classmethod
    def ok(cls, value: Any) -> "GatewayResult":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, kind: str, error: str, details: Optional[str] = None) -> "GatewayResult":
        return cls(success=False, error=error, details=details, kind=kind)
