# edfonda/core/encoding.py
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Callable, Sequence

from .exceptions import EncodingPromotionError, InvalidPlan, RateMismatchError, SampleInfoError
from .header import SIGNED_SAMPLE_TYPES, SampleEncoding, sample_type_range
from .plan import PlanRow


def zero_offset(_offsets: Sequence[float]) -> float:
    return 0.0


def _snap(x: float) -> float:
    # absorb float noise from re-expressing integer range ends
    r = round(x)
    return float(r) if abs(x - r) <= 1e-9 * max(1.0, abs(x)) else x


def _narrowest_sample_type(lo: int, hi: int) -> str | None:
    for sample_type in SIGNED_SAMPLE_TYPES:
        tmin, tmax = sample_type_range(sample_type)
        if tmin <= lo and hi <= tmax:
            return sample_type
    return None


def promote_encodings(
    encodings: Sequence[SampleEncoding],
    *,
    pick_resolution: Callable[[Sequence[float]], float] = min,
    pick_offset: Callable[[Sequence[float]], float] = zero_offset,
    group: object = None,
) -> SampleEncoding:
    """
    Return one encoding able to hold the samples of every input encoding.

    - sample rates must be exactly equal (RateMismatchError otherwise)
    - identical resolutions/offsets are kept; otherwise `pick_resolution`
      (default: the finest) and `pick_offset` (default: 0.0) choose them
    - the sample type is the narrowest signed integer type covering the full
      digital range of every input once re-expressed in the shared
      resolution/offset

    `group` only labels error messages.
    """
    encodings = list(encodings)
    if not encodings:
        raise InvalidPlan("cannot promote an empty sequence of encodings.")

    first = encodings[0]
    if all(e == first for e in encodings[1:]):
        return first

    rates = [e.sample_rate for e in encodings]
    if any(r != rates[0] for r in rates):
        raise RateMismatchError(rates, group=group)

    resolutions = [e.sample_resolution_in_unit for e in encodings]
    offsets = [e.sample_offset_in_unit for e in encodings]
    if all(r == resolutions[0] for r in resolutions) and all(o == offsets[0] for o in offsets):
        resolution, offset = resolutions[0], offsets[0]
    else:
        resolution = float(pick_resolution(resolutions))
        offset = float(pick_offset(offsets))
    if not math.isfinite(resolution) or resolution == 0 or not math.isfinite(offset):
        raise EncodingPromotionError(
            f"invalid promoted resolution/offset ({resolution}, {offset})"
            + ("" if group is None else f" for group {group!r}")
        )

    lo, hi = math.inf, -math.inf
    for e in encodings:
        for physical in e.physical_range():
            digital = _snap((physical - offset) / resolution)
            lo = min(lo, math.floor(digital))
            hi = max(hi, math.ceil(digital))
    sample_type = _narrowest_sample_type(lo, hi)
    if sample_type is None:
        raise EncodingPromotionError(
            f"no integer sample type can hold digital range [{lo}, {hi}]"
            + ("" if group is None else f" for group {group!r}")
        )

    return SampleEncoding(
        sample_type=sample_type,
        sample_resolution_in_unit=resolution,
        sample_offset_in_unit=offset,
        sample_rate=rates[0],
    )


@dataclass(frozen=True, slots=True)
class SamplesInfo:
    """
    Description of one output signal: sensor, channels, unit and encoding.

    `edf_channels` keeps the raw EDF labels of the channels, in channel order.
    """
    sensor_type: str
    sensor_label: str
    channels: tuple[str, ...]
    sample_unit: str
    encoding: SampleEncoding
    edf_channels: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.channels:
            raise SampleInfoError("SamplesInfo needs at least one channel.")
        duplicates = sorted({c for c in self.channels if self.channels.count(c) > 1})
        if duplicates:
            raise SampleInfoError(f"duplicate channel names: {duplicates}")
        if self.edf_channels and len(self.edf_channels) != len(self.channels):
            raise SampleInfoError("edf_channels must align with channels.")


def merge_samples_info(
    rows: Sequence[PlanRow],
    *,
    pick_resolution: Callable[[Sequence[float]], float] = min,
    pick_offset: Callable[[Sequence[float]], float] = zero_offset,
) -> SamplesInfo | None:
    """
    Merge the plan rows of one output signal into a single SamplesInfo.

    Returns None when any row lacks a sensor type, unit, rate, channel or
    encoding. Rows disagreeing on sensor type or unit raise SampleInfoError;
    disagreeing rates raise RateMismatchError from promotion.
    """
    rows = list(rows)
    if not rows:
        raise InvalidPlan("cannot merge an empty group of plan rows.")
    encodings = []
    for row in rows:
        if row.sensor_type is None or row.sample_unit is None or row.channel is None:
            return None
        encoding = row.encoding
        if encoding is None:
            return None
        encodings.append(encoding)

    group = rows[0].onda_signal_index
    for name in ("sensor_type", "sample_unit"):
        values = list(dict.fromkeys(getattr(row, name) for row in rows))
        if len(values) > 1:
            raise SampleInfoError(f"rows of signal {group!r} disagree on {name}: {values}")

    encoding = promote_encodings(
        encodings,
        pick_resolution=pick_resolution,
        pick_offset=pick_offset,
        group=group,
    )
    return SamplesInfo(
        sensor_type=rows[0].sensor_type,
        sensor_label=rows[0].sensor_label or rows[0].sensor_type,
        channels=tuple(row.channel for row in rows),
        sample_unit=rows[0].sample_unit,
        encoding=encoding,
        edf_channels=tuple(row.label for row in rows),
    )
