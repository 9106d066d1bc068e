"""Tests for the vital-sign rule table, batch validator and single-field validator."""
import pytest

from upm.services.vital_signs import (
    VALID_UNITS,
    format_value,
    validate_field,
    validate_vital_sign,
    validate_vital_signs,
)


# ---------------------------------------------------------------------------
# Single readings
# ---------------------------------------------------------------------------

class TestValidateVitalSign:
    def test_valid_temperature(self):
        result = validate_vital_sign("temperature", "98.6", "°F")
        assert result.is_valid
        assert result.errors == []
        assert result.parsed_value == 98.6

    def test_numbers_accepted_as_numbers(self):
        result = validate_vital_sign("heart_rate", 72, "bpm")
        assert result.is_valid
        assert result.parsed_value == 72.0

    @pytest.mark.parametrize(
        "measure_type,value,unit",
        [
            ("temperature", "95.0", "°F"),
            ("temperature", "105.0", "°F"),
            ("heart_rate", "40", "bpm"),
            ("heart_rate", "200", "bpm"),
            ("respiratory_rate", "8", "breaths/min"),
            ("respiratory_rate", "40", "breaths/min"),
            ("weight", "50", "lbs"),
            ("weight", "500", "kg"),
            ("height", "24", "inches"),
            ("height", "84", "cm"),
        ],
    )
    def test_bounds_are_inclusive(self, measure_type, value, unit):
        assert validate_vital_sign(measure_type, value, unit).is_valid

    def test_temperature_out_of_range(self):
        result = validate_vital_sign("temperature", "94.9", "°F")
        assert not result.is_valid
        assert result.errors == ["temperature must be between 95.0 and 105.0 °F"]

    def test_heart_rate_out_of_range(self):
        result = validate_vital_sign("heart_rate", "201", "bpm")
        assert result.errors == ["heart_rate must be between 40 and 200 bpm"]

    def test_heart_rate_far_out_of_range(self):
        result = validate_vital_sign("heart_rate", "250", "bpm")
        assert not result.is_valid
        assert result.errors == ["heart_rate must be between 40 and 200 bpm"]

    def test_weight_range_ignores_unit(self):
        # 50-500 applies to kg and lbs alike
        assert validate_vital_sign("weight", "300", "kg").is_valid
        assert not validate_vital_sign("weight", "40", "lbs").is_valid

    def test_non_numeric_value(self):
        result = validate_vital_sign("heart_rate", "abc", "bpm")
        assert result.errors == ["heart_rate value must be a valid number"]

    def test_unknown_type(self):
        result = validate_vital_sign("glucose", "90", "mg/dL")
        assert result.errors == ["Invalid vital sign type: glucose"]

    def test_wrong_unit(self):
        result = validate_vital_sign("temperature", "37", "°C")
        assert not result.is_valid
        assert result.errors[0] == 'Invalid unit "°C" for temperature. Valid units: °F'


class TestBloodPressure:
    def test_valid_reading(self):
        result = validate_vital_sign("blood_pressure", "120/80", "mmHg")
        assert result.is_valid
        assert result.parsed_value == "120/80"

    @pytest.mark.parametrize("value", ["120", "120/", "/80", "abc/def", "1200/80", "120-80", 120])
    def test_bad_format(self, value):
        result = validate_vital_sign("blood_pressure", value, "mmHg")
        assert not result.is_valid
        assert result.errors == ['Blood pressure must be in format "systolic/diastolic" with numeric values']

    def test_systolic_out_of_range(self):
        result = validate_vital_sign("blood_pressure", "250/80", "mmHg")
        assert result.errors == ["Systolic blood pressure must be between 80 and 200 mmHg"]

    def test_diastolic_out_of_range(self):
        result = validate_vital_sign("blood_pressure", "150/40", "mmHg")
        assert result.errors == ["Diastolic blood pressure must be between 50 and 120 mmHg"]

    def test_systolic_must_exceed_diastolic(self):
        result = validate_vital_sign("blood_pressure", "100/100", "mmHg")
        assert result.errors == ["Systolic blood pressure must be greater than diastolic"]

    def test_low_systolic_below_diastolic(self):
        result = validate_vital_sign("blood_pressure", "70/85", "mmHg")
        assert not result.is_valid
        assert result.errors == [
            "Systolic blood pressure must be between 80 and 200 mmHg",
            "Systolic blood pressure must be greater than diastolic",
        ]

    def test_wrong_unit_reported_with_value_errors(self):
        result = validate_vital_sign("blood_pressure", "250/80", "kPa")
        assert len(result.errors) == 2
        assert result.errors[0].startswith('Invalid unit "kPa" for blood_pressure')


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------

class TestValidateVitalSigns:
    def test_all_valid_batch_is_normalised(self):
        result = validate_vital_signs([
            {"measure_type": "temperature", "value": "98.6", "unit": "°F"},
            {"measure_type": "blood_pressure", "value": " 120/80 ", "unit": "mmHg"},
        ])
        assert result.is_valid
        assert [v["value"] for v in result.validated] == [98.6, "120/80"]

    def test_collects_every_error_with_position(self):
        result = validate_vital_signs([
            {"measure_type": "temperature", "value": "98.6", "unit": "°F"},
            {"measure_type": "heart_rate", "value": "20", "unit": "bpm"},
            {"measure_type": "blood_pressure", "unit": "mmHg"},
        ])
        assert not result.is_valid
        assert result.errors == [
            "Vital sign 2 (heart_rate): heart_rate must be between 40 and 200 bpm",
            "Vital sign 3: measure_type, value, and unit are required",
        ]
        assert len(result.validated) == 1

    def test_not_a_list(self):
        result = validate_vital_signs({"measure_type": "temperature"})
        assert result.errors == ["Vital signs must be provided as an array"]

    def test_non_mapping_item(self):
        result = validate_vital_signs(["98.6"])
        assert result.errors == ["Vital sign 1: measure_type, value, and unit are required"]


class TestValidateField:
    CASES = [
        ("temperature", "98.6", "°F"),
        ("temperature", "110", "°F"),
        ("temperature", "98.6", "°C"),
        ("blood_pressure", "120/80", "mmHg"),
        ("blood_pressure", "80/120", "mmHg"),
        ("blood_pressure", "high", "mmHg"),
        ("heart_rate", "x", "bpm"),
        ("respiratory_rate", "41", "breaths/min"),
        ("weight", "45", "kg"),
        ("height", "90", "cm"),
        ("pulse_ox", "98", "%"),
    ]

    @pytest.mark.parametrize("measure_type,value,unit", CASES)
    def test_agrees_with_batch_validator(self, measure_type, value, unit):
        single = validate_field(measure_type, value, unit)
        batch = validate_vital_signs([{"measure_type": measure_type, "value": value, "unit": unit}])
        if single is None:
            assert batch.is_valid
        else:
            assert batch.errors[0] == f"Vital sign 1 ({measure_type}): {single}"

    def test_every_type_has_units(self):
        for units in VALID_UNITS.values():
            assert units


def test_format_value():
    assert format_value(98.6) == "98.6"
    assert format_value(72.0) == "72"
    assert format_value("120/80") == "120/80"
    assert format_value(123.4567) == "123.4567"
