"""Tests for tri-state numeric values."""
import math

import pytest

from tfbs_enrichment.utils.numeric import (
    Numeric,
    NumericKind,
    POSITIVE_INFINITY,
    UNDEFINED,
    as_numeric,
    neg_log,
    parse_numeric,
)


class TestNumeric:
    """Tests for Numeric."""

    def test_defined_value(self):
        value = Numeric.defined(2.5)
        assert value.is_defined
        assert value.magnitude() == 2.5

    def test_defined_rejects_nan_and_inf(self):
        with pytest.raises(ValueError):
            Numeric.defined(float("nan"))
        with pytest.raises(ValueError):
            Numeric.defined(math.inf)

    def test_undefined_has_no_magnitude(self):
        assert not UNDEFINED.is_set
        with pytest.raises(ValueError):
            UNDEFINED.magnitude()
        assert math.isnan(UNDEFINED.to_float())

    def test_infinity_is_set(self):
        assert POSITIVE_INFINITY.is_set
        assert POSITIVE_INFINITY.magnitude() == math.inf

    def test_format(self):
        assert format(Numeric.defined(0.123456), ".3f") == "0.123"
        assert format(UNDEFINED, ".3f") == "NA"
        assert f"{POSITIVE_INFINITY:0.4f}" == "Inf"


class TestConversions:
    """Tests for as_numeric, neg_log and parse_numeric."""

    def test_as_numeric(self):
        assert as_numeric(None) is UNDEFINED
        assert as_numeric(float("nan")).kind is NumericKind.UNDEFINED
        assert as_numeric(math.inf).kind is NumericKind.POSITIVE_INFINITY
        assert as_numeric(3).value == 3.0
        with pytest.raises(ValueError):
            as_numeric(-math.inf)

    def test_neg_log(self):
        assert neg_log(1.0).value == 0.0
        assert neg_log(math.exp(-2)).value == pytest.approx(2.0)
        assert neg_log(0.0) is POSITIVE_INFINITY
        assert neg_log(UNDEFINED) is UNDEFINED

    def test_neg_log_rejects_negative(self):
        with pytest.raises(ValueError):
            neg_log(-0.1)

    @pytest.mark.parametrize("text", ["NA", "nan", "", "None"])
    def test_parse_undefined(self, text):
        assert parse_numeric(text) is UNDEFINED

    @pytest.mark.parametrize("text", ["Inf", "inf", "+Inf"])
    def test_parse_infinity(self, text):
        assert parse_numeric(text) is POSITIVE_INFINITY

    def test_parse_number(self):
        assert parse_numeric(" 4.0 ").value == 4.0
        with pytest.raises(ValueError):
            parse_numeric("abc")
