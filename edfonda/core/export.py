# edfonda/core/export.py
from __future__ import annotations

from fractions import Fraction
import math
from typing import Iterable, Sequence

import numpy as np

from .header import ChannelHeader, SampleEncoding, sample_type_range
from .samples import SampleMatrix

# Longest record duration tried before falling back to an exact rational one.
MAX_WHOLE_SECONDS_PER_RECORD = 60


def _is_whole(x: float) -> bool:
    return abs(x - round(x)) <= 1e-9 * max(1.0, abs(x))


def seconds_per_record(sample_rates: Iterable[float]) -> float:
    """
    Shortest record duration giving every rate a whole number of samples.

    Whole seconds (1 to MAX_WHOLE_SECONDS_PER_RECORD) are preferred.
    """
    rates = list(sample_rates)
    if not rates:
        return 1.0
    for seconds in range(1, MAX_WHOLE_SECONDS_PER_RECORD + 1):
        if all(_is_whole(rate * seconds) for rate in rates):
            return float(seconds)
    fractions = [Fraction(rate).limit_denominator(10**6) for rate in rates]
    common = math.lcm(*(f.denominator for f in fractions))
    gcd = math.gcd(*(f.numerator * (common // f.denominator) for f in fractions))
    return common / gcd


def _export_header(
    channel: str,
    unit: str,
    encoding: SampleEncoding,
    record_seconds: float,
) -> ChannelHeader:
    dmin, dmax = sample_type_range(encoding.sample_type)
    pmin = dmin * encoding.sample_resolution_in_unit + encoding.sample_offset_in_unit
    pmax = dmax * encoding.sample_resolution_in_unit + encoding.sample_offset_in_unit
    return ChannelHeader(
        label=channel,
        transducer_type="",
        physical_dimension=unit,
        physical_minimum=pmin,
        physical_maximum=pmax,
        digital_minimum=dmin,
        digital_maximum=dmax,
        prefilter="",
        samples_per_record=int(round(encoding.sample_rate * record_seconds)),
        seconds_per_record=record_seconds,
    )


def onda_to_edf(signals: Sequence[SampleMatrix]) -> list[tuple[ChannelHeader, np.ndarray]]:
    """
    Map each channel of each signal to one EDF header + its digital samples.

    Samples are not re-encoded: the header's digital/physical ranges carry
    the signal's resolution and offset. Output order follows `signals`, then
    each signal's channel order.

    The digital range is the full range of the signal's sample type. A
    16-bit EDF file can only hold int8/int16 signals; int32/int64 signals
    need a wider format (e.g. BDF) or re-encoding before they are written.
    """
    record_seconds = seconds_per_record(s.encoding.sample_rate for s in signals)
    exported: list[tuple[ChannelHeader, np.ndarray]] = []
    for signal in signals:
        for channel, digital in zip(signal.channels, signal.data):
            header = _export_header(channel, signal.sample_unit, signal.encoding, record_seconds)
            exported.append((header, digital))
    return exported
