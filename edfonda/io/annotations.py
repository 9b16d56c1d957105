from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import uuid

from edfonda.core import InvariantViolation
from edfonda.io.edf_reader import EdfFileReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Annotation:
    """
    One EDF+ annotation of a recording, spanning [start, stop) seconds.

    `value` is the annotation text. `id` is unique per extracted annotation.
    """
    recording: str
    start: float
    stop: float
    value: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if self.stop < self.start:
            raise InvariantViolation(
                f"annotation stops ({self.stop}) before it starts ({self.start})"
            )

    @property
    def duration(self) -> float:
        return self.stop - self.start


def edf_to_onda_annotations(path: str | Path, recording: str) -> list[Annotation]:
    """
    Extract the EDF+ annotations of the file at `path` for `recording`.

    Returns an empty list when the file carries no annotations.
    """
    with EdfFileReader(str(path)) as reader:
        records = reader.read_annotations()
    annotations = [
        Annotation(recording=recording, start=onset, stop=onset + duration, value=text)
        for onset, duration, text in records
    ]
    logger.debug("read %d annotations for recording %r", len(annotations), recording)
    return annotations
