# edfonda/core/__init__.py
"""
Core conversion engine for edfonda.

This module maps EDF signal headers onto Onda signals:
- labels: canonicalize raw EDF labels into Onda channel names
- plan: match headers against a label table and group them into signals
- encoding: promote the encodings of a signal's channels to a shared one
- samples: re-encode EDF digital samples into one matrix per signal
- export: map Onda sample matrices back to EDF headers + samples

The core layer is independent from I/O and storage formats.
"""

from .header import ChannelHeader, SampleEncoding, edf_signal_encoding, edf_to_onda_unit
from .standards import STANDARD_LABELS, STANDARD_UNITS
from .labels import canonicalize
from .plan import (
    DEFAULT_GROUP_KEYS,
    ChannelMatcher,
    LabelMatcher,
    LabelPreprocessor,
    MatchResult,
    PlanRow,
    PlanRowV1,
    group_rows,
    match_label,
    plan_channel,
    plan_file,
    plan_row_from_mapping,
    upgrade_plan_row,
)
from .encoding import SamplesInfo, merge_samples_info, promote_encodings
from .samples import DEFAULT_DITHER_SEED, SampleMatrix, convert_samples, edf_to_onda_samples
from .export import onda_to_edf
from .exceptions import (
    CoreError,
    SampleInfoError,
    EncodingPromotionError,
    RateMismatchError,
    InvariantViolation,
    InvalidPlan,
    InvalidHeader,
    ChannelNotFound,
    AmbiguousChannelWarning,
    ConversionError,
)


__all__ = [
    # headers / encodings
    "ChannelHeader",
    "SampleEncoding",
    "edf_signal_encoding",
    "edf_to_onda_unit",

    # default tables
    "STANDARD_LABELS",
    "STANDARD_UNITS",

    # matching / planning
    "canonicalize",
    "DEFAULT_GROUP_KEYS",
    "ChannelMatcher",
    "LabelMatcher",
    "LabelPreprocessor",
    "MatchResult",
    "PlanRow",
    "PlanRowV1",
    "group_rows",
    "match_label",
    "plan_channel",
    "plan_file",
    "plan_row_from_mapping",
    "upgrade_plan_row",

    # conversion
    "SamplesInfo",
    "merge_samples_info",
    "promote_encodings",
    "DEFAULT_DITHER_SEED",
    "SampleMatrix",
    "convert_samples",
    "edf_to_onda_samples",
    "onda_to_edf",

    # errors
    "CoreError",
    "SampleInfoError",
    "EncodingPromotionError",
    "RateMismatchError",
    "InvariantViolation",
    "InvalidPlan",
    "InvalidHeader",
    "ChannelNotFound",
    "AmbiguousChannelWarning",
    "ConversionError",
]
