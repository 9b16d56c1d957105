# edfonda/core/plan.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import logging
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence, runtime_checkable
import warnings

from .exceptions import (
    AmbiguousChannelWarning,
    ConversionError,
    CoreError,
    InvalidPlan,
    SampleInfoError,
)
from .header import ChannelHeader, SampleEncoding, edf_signal_encoding, edf_to_onda_unit
from .labels import canonicalize
from .standards import STANDARD_LABELS, STANDARD_UNITS, LabelTable

logger = logging.getLogger(__name__)

DEFAULT_GROUP_KEYS: tuple[str, ...] = ("sensor_type", "sample_unit", "sample_rate")

# (label, transducer_type) -> label, applied before matching
LabelPreprocessor = Callable[[str, str], str]

# V1 column names that were renamed in V2.
_V1_RENAMES = {"kind": "sensor_type"}


# ---------------------------------------------------------------------------
# Plan rows
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class _SignalHeaderColumns:
    """Columns shared by every plan row generation: the EDF signal header."""

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

    @property
    def header(self) -> ChannelHeader:
        return ChannelHeader(
            label=self.label,
            transducer_type=self.transducer_type,
            physical_dimension=self.physical_dimension,
            physical_minimum=self.physical_minimum,
            physical_maximum=self.physical_maximum,
            digital_minimum=self.digital_minimum,
            digital_maximum=self.digital_maximum,
            prefilter=self.prefilter,
            samples_per_record=self.samples_per_record,
            seconds_per_record=self.seconds_per_record,
        )

    @staticmethod
    def _header_columns(header: ChannelHeader) -> dict[str, Any]:
        return {f.name: getattr(header, f.name) for f in fields(ChannelHeader)}

    def _check_error(self) -> None:
        if self.error is not None and not isinstance(self.error, ConversionError):
            raise InvalidPlan("plan row `error` must be a ConversionError or None.")


@dataclass(frozen=True, slots=True)
class PlanRow(_SignalHeaderColumns):
    """
    One EDF signal -> Onda channel conversion (current plan generation).

    Output columns left as None mean "no match". A populated `error` means
    the channel matched but could not be converted.
    """
    recording: str | None = None
    sensor_type: str | None = None
    sensor_label: str | None = None
    channel: str | None = None
    sample_unit: str | None = None
    sample_resolution_in_unit: float | None = None
    sample_offset_in_unit: float | None = None
    sample_type: str | None = None
    sample_rate: float | None = None
    error: ConversionError | None = None
    # file-level context
    edf_signal_index: int | None = None
    onda_signal_index: int | None = None

    def __post_init__(self) -> None:
        self._check_error()

    @classmethod
    def from_header(cls, header: ChannelHeader, **columns: Any) -> "PlanRow":
        return cls(**cls._header_columns(header), **columns)

    @property
    def matched(self) -> bool:
        return self.sensor_type is not None and self.channel is not None

    @property
    def encoding(self) -> SampleEncoding | None:
        if None in (
            self.sample_type,
            self.sample_resolution_in_unit,
            self.sample_offset_in_unit,
            self.sample_rate,
        ):
            return None
        return SampleEncoding(
            sample_type=self.sample_type,
            sample_resolution_in_unit=self.sample_resolution_in_unit,
            sample_offset_in_unit=self.sample_offset_in_unit,
            sample_rate=self.sample_rate,
        )

    def with_error(self, error: ConversionError) -> "PlanRow":
        """Return a copy carrying `error`, with all output columns cleared."""
        return replace(
            self,
            sensor_type=None,
            sensor_label=None,
            channel=None,
            sample_unit=None,
            sample_resolution_in_unit=None,
            sample_offset_in_unit=None,
            sample_type=None,
            sample_rate=None,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True, slots=True)
class PlanRowV1(_SignalHeaderColumns):
    """Legacy plan generation: `kind` instead of `sensor_type`, no `sensor_label`."""

    recording: str | None = None
    kind: str | None = None
    channel: str | None = None
    sample_unit: str | None = None
    sample_resolution_in_unit: float | None = None
    sample_offset_in_unit: float | None = None
    sample_type: str | None = None
    sample_rate: float | None = None
    error: ConversionError | None = None
    edf_signal_index: int | None = None
    onda_signal_index: int | None = None

    def __post_init__(self) -> None:
        self._check_error()

    def upgrade(self) -> PlanRow:
        columns = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "kind"}
        return PlanRow(**columns, sensor_type=self.kind, sensor_label=self.kind)


_PLAN_COLUMNS = frozenset(f.name for f in fields(PlanRow))
_PLAN_V1_COLUMNS = frozenset(f.name for f in fields(PlanRowV1))


def upgrade_plan_row(row: PlanRow | PlanRowV1) -> PlanRow:
    """Return `row` in the current plan generation."""
    if isinstance(row, PlanRow):
        return row
    if isinstance(row, PlanRowV1):
        return row.upgrade()
    raise InvalidPlan(f"expected a plan row, got {type(row).__name__}")


def plan_row_from_mapping(columns: Mapping[str, Any]) -> PlanRow:
    """
    Build a current-generation PlanRow from a mapping of columns.

    Mappings carrying `kind` (and no `sensor_type`) are read as V1 rows and
    upgraded. Unknown columns are rejected.
    """
    columns = dict(columns)
    is_v1 = "kind" in columns and "sensor_type" not in columns
    allowed = _PLAN_V1_COLUMNS if is_v1 else _PLAN_COLUMNS
    unknown = set(columns) - allowed
    if unknown:
        raise InvalidPlan(f"unknown plan columns: {sorted(unknown)}")
    try:
        row = PlanRowV1(**columns) if is_v1 else PlanRow(**columns)
    except TypeError as e:
        raise InvalidPlan(f"malformed plan row: {e}") from e
    return upgrade_plan_row(row)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MatchResult:
    sensor_type: str
    channel: str
    sensor_label: str | None = None


@runtime_checkable
class ChannelMatcher(Protocol):
    """Anything that can map a channel header onto an Onda sensor type/channel."""

    def try_match(self, header: ChannelHeader) -> MatchResult | None: ...


@dataclass(frozen=True, slots=True)
class LabelMatcher:
    """
    Matches headers against an ordered label table; first match wins.

    The first-match policy means an ambiguous label resolves to the earliest
    table entry. `all_matches` exposes every candidate for strict checking.
    """
    labels: LabelTable = STANDARD_LABELS
    _entries: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        entries = []
        for signal_names, specs in self.labels:
            signal_names = tuple(signal_names)
            if not signal_names:
                raise InvalidPlan("label table entries need at least one signal name.")
            canonical: dict[str, tuple[str, ...]] = {}
            channel_names: list[str] = []
            for spec in specs:
                if isinstance(spec, str):
                    channel_names.append(spec)
                else:
                    name, alternates = spec
                    channel_names.append(name)
                    canonical[name] = tuple(alternates)
            entries.append((signal_names, tuple(channel_names), canonical))
        object.__setattr__(self, "_entries", tuple(entries))

    def _iter_matches(self, label: str):
        for signal_names, channel_names, canonical in self._entries:
            for channel_name in channel_names:
                channel = canonicalize(label, signal_names, channel_name, canonical)
                if channel is not None:
                    yield MatchResult(sensor_type=signal_names[0], channel=channel)
                    break

    def match(self, label: str) -> MatchResult | None:
        return next(self._iter_matches(label), None)

    def try_match(self, header: ChannelHeader) -> MatchResult | None:
        return self.match(header.label)

    def all_matches(self, header: ChannelHeader) -> list[MatchResult]:
        """One match per table entry that accepts the label, in table order."""
        return list(self._iter_matches(header.label))


def match_label(label: str, labels: LabelTable = STANDARD_LABELS) -> tuple[str, str] | None:
    """Return `(sensor_type, channel)` for `label`, or None when nothing matches."""
    match = LabelMatcher(labels).match(label)
    return None if match is None else (match.sensor_type, match.channel)


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------
def _run_matchers(
    header: ChannelHeader,
    matchers: Sequence[ChannelMatcher],
    *,
    strict: bool,
) -> MatchResult | None:
    if strict:
        candidates: list[MatchResult] = []
        for matcher in matchers:
            if isinstance(matcher, LabelMatcher):
                candidates.extend(matcher.all_matches(header))
            else:
                m = matcher.try_match(header)
                if m is not None:
                    candidates.append(m)
        distinct = list(dict.fromkeys((c.sensor_type, c.channel) for c in candidates))
        if len(distinct) > 1:
            warnings.warn(
                f"EDF label {header.label!r} matches several signals {distinct}; "
                f"using {distinct[0]}",
                AmbiguousChannelWarning,
                stacklevel=3,
            )
        return candidates[0] if candidates else None

    for matcher in matchers:
        m = matcher.try_match(header)
        if m is not None:
            return m
    return None


def plan_channel(
    header: ChannelHeader,
    *,
    labels: LabelTable = STANDARD_LABELS,
    units: Mapping[str, Iterable[str]] = STANDARD_UNITS,
    custom_matchers: Sequence[ChannelMatcher] = (),
    recording: str | None = None,
    strict: bool = False,
    preprocess_labels: LabelPreprocessor | None = None,
    _label_matcher: LabelMatcher | None = None,
) -> PlanRow:
    """
    Formulate the conversion plan for a single EDF signal.

    The label table is tried first, then `custom_matchers` in order. An
    unmatched header yields a row with no sensor type/channel. Failures while
    deriving the unit or encoding of a matched header are recorded in the
    row's `error` column instead of being raised.

    `preprocess_labels(label, transducer_type)` rewrites the label seen by
    the matchers; the row keeps the raw header.
    """
    label_matcher = _label_matcher if _label_matcher is not None else LabelMatcher(labels)
    match_header = header
    if preprocess_labels is not None:
        match_header = replace(
            header, label=preprocess_labels(header.label, header.transducer_type)
        )
    match = _run_matchers(match_header, (label_matcher, *custom_matchers), strict=strict)
    row = PlanRow.from_header(header, recording=recording)
    if match is None:
        logger.debug("no match for EDF label %r", header.label)
        return row

    try:
        try:
            unit = edf_to_onda_unit(header.physical_dimension, units)
            encoding = edf_signal_encoding(header)
        except (ValueError, ArithmeticError) as e:
            raise SampleInfoError(f"could not derive samples info: {e}") from e
    except CoreError as e:
        error = ConversionError.from_exception(e, label=header.label)
        logger.warning("EDF signal %r: %s", header.label, error)
        return row.with_error(error)

    return replace(
        row,
        sensor_type=match.sensor_type,
        sensor_label=match.sensor_label or match.sensor_type,
        channel=match.channel,
        sample_unit=unit,
        sample_resolution_in_unit=encoding.sample_resolution_in_unit,
        sample_offset_in_unit=encoding.sample_offset_in_unit,
        sample_type=encoding.sample_type,
        sample_rate=encoding.sample_rate,
    )


def plan_file(
    headers: Iterable[ChannelHeader],
    *,
    labels: LabelTable = STANDARD_LABELS,
    units: Mapping[str, Iterable[str]] = STANDARD_UNITS,
    custom_matchers: Sequence[ChannelMatcher] = (),
    recording: str | None = None,
    strict: bool = False,
    preprocess_labels: LabelPreprocessor | None = None,
    group_keys: Sequence[str] = DEFAULT_GROUP_KEYS,
) -> list[PlanRow]:
    """
    Plan the conversion of every signal of an EDF file.

    Each row records its position in `headers` as `edf_signal_index`, rows
    are grouped into output signals (`onda_signal_index`) and returned
    sorted by output signal, then by EDF signal. Ungrouped rows come last.
    No sample data is read.
    """
    label_matcher = LabelMatcher(labels)
    rows = [
        replace(
            plan_channel(
                header,
                units=units,
                custom_matchers=custom_matchers,
                recording=recording,
                strict=strict,
                preprocess_labels=preprocess_labels,
                _label_matcher=label_matcher,
            ),
            edf_signal_index=i,
        )
        for i, header in enumerate(headers)
    ]
    return sort_plan(group_rows(rows, group_keys))


def sort_plan(rows: Iterable[PlanRow]) -> list[PlanRow]:
    def key(row: PlanRow):
        grouped = row.onda_signal_index is not None
        return (
            not grouped,
            row.onda_signal_index if grouped else 0,
            row.edf_signal_index if row.edf_signal_index is not None else 0,
        )

    return sorted(rows, key=key)


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------
def group_rows(
    rows: Iterable[PlanRow],
    group_keys: Sequence[str] = DEFAULT_GROUP_KEYS,
) -> list[PlanRow]:
    """
    Assign `onda_signal_index` to rows sharing the values of `group_keys`.

    Indices are dense, 0-based and follow the first occurrence of each key
    combination; input order is kept. Rows with an error, without a channel,
    or missing any key get no index. Missing `edf_signal_index` values are
    filled in from input order.
    """
    keys = tuple(_V1_RENAMES.get(k, k) for k in group_keys)
    unknown = [k for k in keys if k not in _PLAN_COLUMNS]
    if unknown:
        raise InvalidPlan(f"unknown group keys: {unknown}")

    indices: dict[tuple, int] = {}
    grouped: list[PlanRow] = []
    for position, row in enumerate(rows):
        edf_index = row.edf_signal_index if row.edf_signal_index is not None else position
        values = tuple(getattr(row, k) for k in keys)
        if row.error is not None or row.channel is None or any(v is None for v in values):
            grouped.append(replace(row, edf_signal_index=edf_index, onda_signal_index=None))
            continue
        index = indices.setdefault(values, len(indices))
        grouped.append(replace(row, edf_signal_index=edf_index, onda_signal_index=index))
    logger.debug("grouped %d plan rows into %d signals", len(grouped), len(indices))
    return grouped
