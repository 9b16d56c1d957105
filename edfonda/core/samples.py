# edfonda/core/samples.py
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Iterable, Sequence

import numpy as np

from .encoding import SamplesInfo, merge_samples_info, zero_offset
from .exceptions import (
    ChannelNotFound,
    ConversionError,
    EncodingPromotionError,
    InvalidPlan,
    InvariantViolation,
    SampleInfoError,
)
from .header import ChannelHeader, SampleEncoding, edf_signal_encoding, sample_type_range
from .plan import PlanRow, sort_plan, upgrade_plan_row

logger = logging.getLogger(__name__)

# Seed of the dither generator allocated when the caller supplies none.
DEFAULT_DITHER_SEED = 0


@dataclass(frozen=True, slots=True)
class SampleMatrix:
    """
    Encoded samples of one output signal: a (channels x samples) integer
    matrix in the dtype of `info.encoding`.
    """
    info: SamplesInfo
    data: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        data = np.asarray(self.data)
        if data.ndim != 2:
            raise InvariantViolation(f"sample data must be 2D, got shape {data.shape}")
        if data.shape[0] != len(self.info.channels):
            raise InvariantViolation(
                f"sample data has {data.shape[0]} rows for {len(self.info.channels)} channels"
            )
        if data.dtype != self.info.encoding.dtype:
            raise InvariantViolation(
                f"sample data dtype {data.dtype} does not match encoding "
                f"{self.info.encoding.sample_type}"
            )
        object.__setattr__(self, "data", data)

    @property
    def sensor_type(self) -> str:
        return self.info.sensor_type

    @property
    def channels(self) -> tuple[str, ...]:
        return self.info.channels

    @property
    def sample_unit(self) -> str:
        return self.info.sample_unit

    @property
    def encoding(self) -> SampleEncoding:
        return self.info.encoding

    @property
    def edf_channels(self) -> tuple[str, ...]:
        return self.info.edf_channels

    @property
    def n_samples(self) -> int:
        return int(self.data.shape[1])

    @property
    def duration(self) -> float:
        return self.n_samples / self.encoding.sample_rate

    def channel(self, name: str) -> np.ndarray:
        """Digital samples of channel `name`."""
        try:
            i = self.info.channels.index(name)
        except ValueError as e:
            raise ChannelNotFound(name) from e
        return self.data[i]

    def decode(self) -> np.ndarray:
        """Samples in physical units (float64)."""
        return self.encoding.decode(self.data)


def encode(
    physical: np.ndarray,
    encoding: SampleEncoding,
    *,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """
    Quantize physical values into `encoding`.

    With `rng`, uniform dither in [-0.5, 0.5) digital units is added before
    rounding; the quantization error stays below one resolution step.
    Values outside the sample type's range are clipped.
    """
    x = (np.asarray(physical, dtype=np.float64) - encoding.sample_offset_in_unit) / (
        encoding.sample_resolution_in_unit
    )
    if rng is not None:
        x = x + rng.uniform(-0.5, 0.5, size=x.shape)
    lo, hi = sample_type_range(encoding.sample_type)
    return np.clip(np.rint(x), lo, hi).astype(encoding.dtype)


def _fits(digital: np.ndarray, sample_type: str) -> bool:
    if digital.size == 0:
        return True
    lo, hi = sample_type_range(sample_type)
    return int(digital.min()) >= lo and int(digital.max()) <= hi


def convert_samples(
    target: SamplesInfo,
    members: Sequence[tuple[ChannelHeader, np.ndarray]],
    *,
    dither: bool = True,
    rng: np.random.Generator | None = None,
) -> SampleMatrix:
    """
    Build the SampleMatrix of `target` from EDF headers + digital samples.

    A member already encoded like `target` is copied verbatim; a member with
    the same resolution and offset but a narrower sample type is cast.
    Others are decoded to physical units and re-encoded, with dither when
    `dither` is true. Without `rng`, dither draws from
    `numpy.random.default_rng(DEFAULT_DITHER_SEED)`.
    """
    if len(members) != len(target.channels):
        raise InvariantViolation(
            f"{len(members)} EDF signals given for {len(target.channels)} channels"
        )
    encoding = target.encoding
    if dither and rng is None:
        rng = np.random.default_rng(DEFAULT_DITHER_SEED)

    rows: list[np.ndarray] = []
    for (header, digital), channel in zip(members, target.channels):
        source = edf_signal_encoding(header)
        if source.sample_rate != encoding.sample_rate:
            raise InvariantViolation(
                f"EDF signal {header.label!r} has sample rate {source.sample_rate}, "
                f"expected {encoding.sample_rate}"
            )
        digital = np.asarray(digital)
        if digital.ndim != 1:
            raise InvariantViolation(
                f"digital samples of {header.label!r} must be 1D, got shape {digital.shape}"
            )
        if rows and digital.size != rows[0].size:
            raise InvariantViolation(
                f"EDF signal {header.label!r} has {digital.size} samples, "
                f"expected {rows[0].size}"
            )

        same_scale = (
            source.sample_resolution_in_unit == encoding.sample_resolution_in_unit
            and source.sample_offset_in_unit == encoding.sample_offset_in_unit
        )
        if source == encoding:
            rows.append(digital.astype(encoding.dtype, copy=False))
        elif same_scale and _fits(digital, encoding.sample_type):
            rows.append(digital.astype(encoding.dtype))
        else:
            logger.debug("re-encoding %r as %s", channel, encoding)
            rows.append(encode(source.decode(digital), encoding, rng=rng if dither else None))

    return SampleMatrix(info=target, data=np.stack(rows))


def edf_to_onda_samples(
    plan: Iterable[PlanRow],
    read_samples: Callable[[int], np.ndarray],
    *,
    dither: bool = True,
    rng: np.random.Generator | None = None,
    pick_resolution: Callable[[Sequence[float]], float] = min,
    pick_offset: Callable[[Sequence[float]], float] = zero_offset,
) -> tuple[list[SampleMatrix], list[PlanRow]]:
    """
    Execute a plan: build one SampleMatrix per `onda_signal_index`.

    `read_samples(edf_signal_index)` returns the digital samples of an EDF
    signal. Promotion or samples-info failures (incomplete rows included)
    are recorded as the `error` of every row of the affected signal, which
    then yields no matrix; other signals are unaffected. Returns the matrices in signal order and the
    plan as executed.
    """
    rows = [upgrade_plan_row(row) for row in plan]
    groups: dict[int, list[int]] = {}
    for position, row in enumerate(rows):
        if row.onda_signal_index is None:
            continue
        if row.edf_signal_index is None:
            raise InvalidPlan(f"plan row {row.label!r} has no edf_signal_index")
        groups.setdefault(row.onda_signal_index, []).append(position)

    if dither and rng is None:
        rng = np.random.default_rng(DEFAULT_DITHER_SEED)

    matrices: list[SampleMatrix] = []
    for index in sorted(groups):
        positions = groups[index]
        members = [rows[p] for p in positions]
        try:
            info = merge_samples_info(
                members, pick_resolution=pick_resolution, pick_offset=pick_offset
            )
            if info is None:
                raise SampleInfoError(
                    f"signal {index} has rows without a sensor type, unit, channel or encoding"
                )
            matrix = convert_samples(
                info,
                [(row.header, read_samples(row.edf_signal_index)) for row in members],
                dither=dither,
                rng=rng,
            )
        except (SampleInfoError, EncodingPromotionError) as e:
            error = ConversionError.from_exception(
                e,
                onda_signal_index=index,
                labels=[row.label for row in members],
            )
            logger.warning("signal %d not converted: %s", index, error)
            for p in positions:
                rows[p] = rows[p].with_error(error)
            continue
        matrices.append(matrix)

    logger.info("converted %d signals from %d EDF signals", len(matrices), len(rows))
    return matrices, sort_plan(rows)
