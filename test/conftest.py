import pytest

from edfonda.core import ChannelHeader


@pytest.fixture
def make_header():
    """Factory for EDF signal headers with 16-bit, +/-3200 defaults."""

    def _make(
        label,
        unit="uV",
        *,
        samples_per_record=256,
        seconds_per_record=1.0,
        physical_minimum=-3200.0,
        physical_maximum=3200.0,
        digital_minimum=-32768,
        digital_maximum=32767,
    ):
        return ChannelHeader(
            label=label,
            transducer_type="",
            physical_dimension=unit,
            physical_minimum=physical_minimum,
            physical_maximum=physical_maximum,
            digital_minimum=digital_minimum,
            digital_maximum=digital_maximum,
            prefilter="",
            samples_per_record=samples_per_record,
            seconds_per_record=seconds_per_record,
        )

    return _make
