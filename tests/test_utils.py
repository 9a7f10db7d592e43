"""
Tests for shared helpers: GST, coercion, JSON sub-fields, sequence codes
"""

import logging

import pytest

from textile.models import parse_quality_details
from textile.utils import (
    NOT_APPLICABLE,
    format_inr,
    gst_amount,
    next_code,
    parse_json_list,
    safe_div,
    to_float,
    validate_gst_rate,
)


class TestGst:
    @pytest.mark.parametrize("base", [0, 1, 100, 12345.67])
    def test_not_applicable_is_zero(self, base):
        assert gst_amount(NOT_APPLICABLE, base) == 0

    def test_eighteen_percent(self):
        assert gst_amount("18%", 100) == 18.0

    def test_fractional_rate(self):
        assert gst_amount("2.5%", 200) == pytest.approx(5.0)

    def test_missing_base(self):
        assert gst_amount("9%", None) == 0

    def test_validate_rate(self):
        assert validate_gst_rate("", "SGST") == NOT_APPLICABLE
        assert validate_gst_rate(" 12% ", "SGST") == "12%"
        with pytest.raises(ValueError, match="CGST"):
            validate_gst_rate("15%", "CGST")


class TestCoercion:
    @pytest.mark.parametrize("v", [None, "", "abc", object()])
    def test_to_float_defaults_to_zero(self, v):
        assert to_float(v) == 0.0

    def test_safe_div(self):
        assert safe_div(10, 0) == 0.0
        assert safe_div(10, 4) == 2.5

    def test_format_inr(self):
        assert format_inr(1280) == "₹1,280.00"


class TestJsonSubFields:
    def test_valid_list(self):
        assert parse_json_list('[{"size": "M", "quantity": 2}]', required_keys=("size",)) == [{"size": "M", "quantity": 2}]

    def test_already_decoded(self):
        assert parse_json_list([1, 2]) == [1, 2]

    @pytest.mark.parametrize("raw", [None, "", "{bad json", '{"a": 1}', "42"])
    def test_malformed_falls_back_to_empty(self, raw):
        assert parse_json_list(raw) == []

    def test_shape_mismatch_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="textile.utils"):
            assert parse_json_list('[{"name": "x"}]', required_keys=("size",), field="product_size") == []
        assert "product_size" in caplog.text

    def test_quality_details(self):
        [detail] = parse_quality_details('[{"quality_name": "Rayon", "quantity": "120.5", "rate": 44}]')
        assert detail.quality_name == "Rayon"
        assert detail.quantity == 120.5
        assert detail.rate == 44.0


class TestNextCode:
    def test_first(self):
        assert next_code("SVH-CH-20250105-", None) == "SVH-CH-20250105-001"

    def test_increment(self):
        assert next_code("BN20250101", "BN20250101009") == "BN20250101010"

    def test_non_numeric_tail_restarts(self):
        assert next_code("BN20250101", "BN2025010100X") == "BN20250101001"

    def test_sequence_past_three_digits(self):
        assert next_code("BN20250101", "BN20250101999") == "BN202501011000"
        assert next_code("BN20250101", "BN202501011000") == "BN202501011001"
