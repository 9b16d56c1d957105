# test/test_exceptions.py
import pytest

from edfonda.core import (
    AmbiguousChannelWarning,
    ChannelNotFound,
    ConversionError,
    CoreError,
    EncodingPromotionError,
    InvalidHeader,
    InvalidPlan,
    InvariantViolation,
    RateMismatchError,
    SampleInfoError,
)


def test_exception_inheritance_core():
    assert issubclass(SampleInfoError, CoreError)
    assert issubclass(EncodingPromotionError, CoreError)
    assert issubclass(RateMismatchError, EncodingPromotionError)
    assert issubclass(InvariantViolation, CoreError)
    assert issubclass(InvalidPlan, CoreError)
    assert issubclass(InvalidHeader, CoreError)


def test_validation_errors_are_value_errors():
    assert issubclass(InvalidPlan, ValueError)
    assert issubclass(InvalidHeader, ValueError)


def test_lookup_errors_can_be_raised_and_caught_as_keyerror():
    assert issubclass(ChannelNotFound, KeyError)
    with pytest.raises(KeyError):
        raise ChannelNotFound("c3")


def test_ambiguity_is_a_warning_not_an_error():
    assert issubclass(AmbiguousChannelWarning, UserWarning)
    assert not issubclass(AmbiguousChannelWarning, CoreError)


def test_rate_mismatch_message():
    err = RateMismatchError([256.0, 128.0], group=3)
    assert err.rates == (256.0, 128.0)
    assert err.group == 3
    assert "group 3" in str(err)


class TestConversionError:
    def test_from_exception_keeps_kind_message_and_context(self):
        err = ConversionError.from_exception(SampleInfoError("bad range"), label="EEG C3")
        assert err.kind == "SampleInfoError"
        assert err.message == "bad range"
        assert err.context == {"label": "EEG C3"}

    def test_from_exception_records_cause(self):
        try:
            try:
                raise ZeroDivisionError("division by zero")
            except ZeroDivisionError as e:
                raise SampleInfoError("could not derive samples info") from e
        except SampleInfoError as e:
            err = ConversionError.from_exception(e)
        assert err.context["cause"] == "ZeroDivisionError: division by zero"

    def test_str_and_parse(self):
        err = ConversionError("RateMismatchError", "multiple sample rates", {"group": 0})
        text = str(err)
        assert text == "RateMismatchError: multiple sample rates [group=0]"

        parsed = ConversionError.parse(text)
        assert parsed.kind == "RateMismatchError"
        assert parsed.message == "multiple sample rates"

    def test_parse_unstructured_text(self):
        parsed = ConversionError.parse("something went wrong")
        assert parsed.kind == "Error"
        assert parsed.message == "something went wrong"
