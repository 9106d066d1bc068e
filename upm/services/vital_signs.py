"""
Vital-sign validation.

One fixed rule table drives both the batch validator used when nurses submit
a set of readings and the single-field validator used for incremental form
feedback, so the two can never disagree on ranges or units.
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

TEMPERATURE = "temperature"
BLOOD_PRESSURE = "blood_pressure"
HEART_RATE = "heart_rate"
RESPIRATORY_RATE = "respiratory_rate"
WEIGHT = "weight"
HEIGHT = "height"

VALID_VITAL_TYPES = [TEMPERATURE, BLOOD_PRESSURE, HEART_RATE, RESPIRATORY_RATE, WEIGHT, HEIGHT]

VALID_UNITS: Dict[str, Tuple[str, ...]] = {
    TEMPERATURE: ("°F",),
    BLOOD_PRESSURE: ("mmHg",),
    HEART_RATE: ("bpm",),
    RESPIRATORY_RATE: ("breaths/min",),
    WEIGHT: ("lbs", "kg"),
    HEIGHT: ("inches", "cm"),
}

# Inclusive (min, max) bounds
VITAL_SIGN_RANGES: Dict[str, Tuple[float, float]] = {
    TEMPERATURE: (95.0, 105.0),
    HEART_RATE: (40, 200),
    RESPIRATORY_RATE: (8, 40),
    WEIGHT: (50, 500),
    HEIGHT: (24, 84),
}
SYSTOLIC_RANGE = (80, 200)
DIASTOLIC_RANGE = (50, 120)

BLOOD_PRESSURE_PATTERN = re.compile(r"^(\d{2,3})/(\d{2,3})$")

ParsedValue = Union[float, str]


@dataclass
class VitalSignResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    parsed_value: Optional[ParsedValue] = None


@dataclass
class BatchValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    validated: List[Dict[str, Any]] = field(default_factory=list)


def _check_blood_pressure(value: Any) -> Tuple[Optional[str], List[str]]:
    match = BLOOD_PRESSURE_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        return None, ['Blood pressure must be in format "systolic/diastolic" with numeric values']

    systolic, diastolic = int(match.group(1)), int(match.group(2))
    errors = []
    low, high = SYSTOLIC_RANGE
    if not low <= systolic <= high:
        errors.append(f"Systolic blood pressure must be between {low} and {high} mmHg")
    low, high = DIASTOLIC_RANGE
    if not low <= diastolic <= high:
        errors.append(f"Diastolic blood pressure must be between {low} and {high} mmHg")
    if systolic <= diastolic:
        errors.append("Systolic blood pressure must be greater than diastolic")
    return f"{systolic}/{diastolic}", errors


def _check_numeric(measure_type: str, value: Any, unit: str) -> Tuple[Optional[float], List[str]]:
    number = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None
    if number is None or math.isnan(number) or math.isinf(number):
        return None, [f"{measure_type} value must be a valid number"]

    low, high = VITAL_SIGN_RANGES[measure_type]
    if not low <= number <= high:
        shown_unit = unit if unit in VALID_UNITS[measure_type] else VALID_UNITS[measure_type][0]
        return number, [f"{measure_type} must be between {low} and {high} {shown_unit}"]
    return number, []


def validate_vital_sign(measure_type: str, value: Any, unit: str) -> VitalSignResult:
    """Validate one reading against the rule table."""
    if measure_type not in VALID_UNITS:
        return VitalSignResult(is_valid=False, errors=[f"Invalid vital sign type: {measure_type}"])

    errors = []
    allowed_units = VALID_UNITS[measure_type]
    if unit not in allowed_units:
        errors.append(
            f'Invalid unit "{unit}" for {measure_type}. Valid units: {", ".join(allowed_units)}'
        )

    if measure_type == BLOOD_PRESSURE:
        parsed, value_errors = _check_blood_pressure(value)
    else:
        parsed, value_errors = _check_numeric(measure_type, value, unit)
    errors.extend(value_errors)

    if errors:
        return VitalSignResult(is_valid=False, errors=errors)
    return VitalSignResult(is_valid=True, parsed_value=parsed)


def validate_vital_signs(vital_signs: Any) -> BatchValidationResult:
    """
    Validate a batch of readings.

    Each item is a mapping with ``measure_type``, ``value`` and ``unit``.
    Every item is checked and every error is collected; ``validated`` holds
    the normalised readings that passed.
    """
    if not isinstance(vital_signs, list):
        return BatchValidationResult(is_valid=False, errors=["Vital signs must be provided as an array"])

    errors: List[str] = []
    validated: List[Dict[str, Any]] = []
    for index, item in enumerate(vital_signs, start=1):
        if not isinstance(item, dict):
            item = {}
        measure_type = item.get("measure_type")
        value = item.get("value")
        unit = item.get("unit")
        if not measure_type or value is None or value == "" or not unit:
            errors.append(f"Vital sign {index}: measure_type, value, and unit are required")
            continue

        result = validate_vital_sign(measure_type, value, unit)
        if not result.is_valid:
            errors.extend(f"Vital sign {index} ({measure_type}): {error}" for error in result.errors)
            continue
        validated.append({"measure_type": measure_type, "value": result.parsed_value, "unit": unit})

    return BatchValidationResult(is_valid=not errors, errors=errors, validated=validated)


def validate_field(measure_type: str, value: Any, unit: str) -> Optional[str]:
    """First validation error for a single form field, or None when it is valid."""
    result = validate_vital_sign(measure_type, value, unit)
    return result.errors[0] if result.errors else None


def format_value(parsed_value: ParsedValue) -> str:
    """Storage form of a parsed reading: ``"98.6"``, ``"72"`` or ``"120/80"``."""
    if isinstance(parsed_value, str):
        return parsed_value
    text = repr(float(parsed_value))
    return text[:-2] if text.endswith(".0") else text
