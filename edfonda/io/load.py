# edfonda/io/load.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Sequence

import numpy as np

from edfonda.io.edf_reader import EdfFileReader
from edfonda.core import (
    STANDARD_LABELS,
    STANDARD_UNITS,
    ChannelMatcher,
    LabelPreprocessor,
    PlanRow,
    SampleMatrix,
    edf_to_onda_samples,
    plan_file,
)
from edfonda.core.standards import LabelTable


def plan_edf(
    path: str,
    *,
    labels: LabelTable = STANDARD_LABELS,
    units: Mapping[str, Iterable[str]] = STANDARD_UNITS,
    custom_matchers: Sequence[ChannelMatcher] = (),
    recording: str | None = None,
    strict: bool = False,
    preprocess_labels: LabelPreprocessor | None = None,
) -> list[PlanRow]:
    """Plan the conversion of the EDF file at `path` without reading samples."""
    with EdfFileReader(path) as reader:
        return plan_file(
            reader.headers(),
            labels=labels,
            units=units,
            custom_matchers=custom_matchers,
            recording=recording,
            strict=strict,
            preprocess_labels=preprocess_labels,
        )


def load_edf(
    path: str,
    plan: Sequence[PlanRow] | None = None,
    *,
    labels: LabelTable = STANDARD_LABELS,
    units: Mapping[str, Iterable[str]] = STANDARD_UNITS,
    custom_matchers: Sequence[ChannelMatcher] = (),
    recording: str | None = None,
    strict: bool = False,
    preprocess_labels: LabelPreprocessor | None = None,
    dither: bool = True,
    rng: np.random.Generator | None = None,
) -> tuple[list[SampleMatrix], list[PlanRow]]:
    """
    Convert the EDF file at `path` into one SampleMatrix per output signal.

    Without `plan`, one is formulated from the file's headers first. The
    executed plan is returned alongside the matrices; review it for
    unmatched rows (no sensor_type/channel) and rows with an `error`.
    """
    with EdfFileReader(str(Path(path))) as reader:
        if plan is None:
            plan = plan_file(
                reader.headers(),
                labels=labels,
                units=units,
                custom_matchers=custom_matchers,
                recording=recording,
                strict=strict,
                preprocess_labels=preprocess_labels,
            )
        return edf_to_onda_samples(plan, reader.read_digital, dither=dither, rng=rng)
