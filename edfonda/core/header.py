# edfonda/core/header.py
from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Iterable, Mapping

import numpy as np

from .exceptions import InvalidHeader, SampleInfoError


# Sample types an Onda encoding may use, narrowest first within each family.
SAMPLE_TYPES: dict[str, np.dtype] = {
    name: np.dtype(name)
    for name in ("int8", "int16", "int32", "int64", "uint8", "uint16", "uint32", "uint64")
}

# Candidates for promoted encodings.
SIGNED_SAMPLE_TYPES: tuple[str, ...] = ("int8", "int16", "int32", "int64")


def sample_type_range(sample_type: str) -> tuple[int, int]:
    """Return the (min, max) digital value representable by `sample_type`."""
    try:
        info = np.iinfo(SAMPLE_TYPES[sample_type])
    except KeyError as e:
        raise SampleInfoError(f"unsupported sample type {sample_type!r}") from e
    return int(info.min), int(info.max)


@dataclass(frozen=True, slots=True)
class ChannelHeader:
    """
    Header of one EDF signal, plus the file-level `seconds_per_record`.

    Immutable; one per source channel.
    """
    label: str
    transducer_type: str
    physical_dimension: str
    physical_minimum: float
    physical_maximum: float
    digital_minimum: float
    digital_maximum: float
    prefilter: str
    samples_per_record: int
    seconds_per_record: float

    def __post_init__(self) -> None:
        for name in ("label", "transducer_type", "physical_dimension", "prefilter"):
            if not isinstance(getattr(self, name), str):
                raise InvalidHeader(f"ChannelHeader.{name} must be a string.")
        if isinstance(self.samples_per_record, bool) or not isinstance(
            self.samples_per_record, (int, np.integer)
        ):
            raise InvalidHeader("ChannelHeader.samples_per_record must be an integer.")
        if self.samples_per_record < 0:
            raise InvalidHeader("ChannelHeader.samples_per_record must be >= 0.")
        object.__setattr__(self, "samples_per_record", int(self.samples_per_record))
        for name in (
            "physical_minimum",
            "physical_maximum",
            "digital_minimum",
            "digital_maximum",
            "seconds_per_record",
        ):
            object.__setattr__(self, name, float(getattr(self, name)))


@dataclass(frozen=True, slots=True)
class SampleEncoding:
    """Digital encoding of a signal: physical = digital * resolution + offset."""

    sample_type: str
    sample_resolution_in_unit: float
    sample_offset_in_unit: float
    sample_rate: float

    def __post_init__(self) -> None:
        if self.sample_type not in SAMPLE_TYPES:
            raise SampleInfoError(f"unsupported sample type {self.sample_type!r}")
        res = float(self.sample_resolution_in_unit)
        if not math.isfinite(res) or res == 0:
            raise SampleInfoError(f"sample resolution must be finite and nonzero, got {res}")
        off = float(self.sample_offset_in_unit)
        if not math.isfinite(off):
            raise SampleInfoError(f"sample offset must be finite, got {off}")
        rate = float(self.sample_rate)
        if not math.isfinite(rate) or rate <= 0:
            raise SampleInfoError(f"sample rate must be finite and positive, got {rate}")
        object.__setattr__(self, "sample_resolution_in_unit", res)
        object.__setattr__(self, "sample_offset_in_unit", off)
        object.__setattr__(self, "sample_rate", rate)

    @property
    def dtype(self) -> np.dtype:
        return SAMPLE_TYPES[self.sample_type]

    def physical_range(self) -> tuple[float, float]:
        """Physical values at the two ends of the sample type's range (sorted)."""
        lo, hi = sample_type_range(self.sample_type)
        a = lo * self.sample_resolution_in_unit + self.sample_offset_in_unit
        b = hi * self.sample_resolution_in_unit + self.sample_offset_in_unit
        return (a, b) if a <= b else (b, a)

    def decode(self, digital: np.ndarray) -> np.ndarray:
        return np.asarray(digital, dtype=np.float64) * self.sample_resolution_in_unit + (
            self.sample_offset_in_unit
        )


def edf_signal_encoding(header: ChannelHeader) -> SampleEncoding:
    """
    Derive the Onda encoding of an EDF signal from its header.

    Raises SampleInfoError for degenerate digital/physical ranges or a
    non-positive record duration.
    """
    dmin, dmax = header.digital_minimum, header.digital_maximum
    pmin, pmax = header.physical_minimum, header.physical_maximum
    if not dmin < dmax:
        raise SampleInfoError(
            f"digital minimum ({dmin}) must be less than digital maximum ({dmax})"
        )
    if pmin == pmax:
        raise SampleInfoError(
            f"physical minimum ({pmin}) must differ from physical maximum ({pmax})"
        )
    if header.seconds_per_record <= 0:
        raise SampleInfoError(
            f"seconds_per_record must be positive, got {header.seconds_per_record}"
        )
    resolution = (pmax - pmin) / (dmax - dmin)
    offset = pmin - resolution * dmin
    lo16, hi16 = sample_type_range("int16")
    sample_type = "int16" if (dmin >= lo16 and dmax <= hi16) else "int32"
    return SampleEncoding(
        sample_type=sample_type,
        sample_resolution_in_unit=resolution,
        sample_offset_in_unit=offset,
        sample_rate=header.samples_per_record / header.seconds_per_record,
    )


_NON_NAME_RE = re.compile(r"[^a-z0-9]+")


def edf_to_onda_unit(
    physical_dimension: str,
    units: Mapping[str, Iterable[str]],
) -> str:
    """
    Map an EDF physical dimension onto an Onda unit name.

    Known spellings (case-insensitive) resolve through `units`; anything else
    is converted to snake case. An empty dimension maps to "unknown".
    """
    dim = physical_dimension.strip().lower()
    if not dim:
        return "unknown"
    for unit, alternates in units.items():
        if dim == unit or any(dim == alt.lower() for alt in alternates):
            return unit
    name = _NON_NAME_RE.sub("_", dim).strip("_")
    if not name:
        raise SampleInfoError(
            f"cannot convert physical dimension {physical_dimension!r} to a unit name"
        )
    return name
