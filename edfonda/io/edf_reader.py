from __future__ import annotations

from typing import List, Protocol

import numpy as np
import pyedflib  # EDF/BDF file handling

from edfonda.core import ChannelHeader


class SignalFileReader(Protocol):
    """Protocol for raw signal file readers.

    Implementations expose one ChannelHeader per (non-annotation) signal and
    the digital samples of a signal by index.
    """

    def headers(self) -> List[ChannelHeader]:
        ...

    def read_digital(self, index: int) -> "np.ndarray":
        ...


class EdfFileReader:
    """Concrete SignalFileReader on top of pyedflib.EdfReader.

    Annotation signals (EDF+ "EDF Annotations") are not exposed; signal
    indices count only the data signals, in file order.
    """

    def __init__(self, path: str):
        self._path = str(path)
        self._edf = pyedflib.EdfReader(self._path)
        self._headers: list[ChannelHeader] = []
        self._build_index()

    # ------------------------------------------------------------------
    # Index construction
    # ------------------------------------------------------------------
    def _build_index(self) -> None:
        seconds_per_record = float(self._edf.datarecord_duration)
        for i in range(self._edf.signals_in_file):
            h = self._edf.getSignalHeader(i)
            self._headers.append(
                ChannelHeader(
                    label=h["label"],
                    transducer_type=h.get("transducer", ""),
                    physical_dimension=h.get("dimension", ""),
                    physical_minimum=h["physical_min"],
                    physical_maximum=h["physical_max"],
                    digital_minimum=h["digital_min"],
                    digital_maximum=h["digital_max"],
                    prefilter=h.get("prefilter", ""),
                    samples_per_record=int(self._edf.samples_in_datarecord(i)),
                    seconds_per_record=seconds_per_record,
                )
            )

    # ------------------------------------------------------------------
    # SignalFileReader protocol implementation
    # ------------------------------------------------------------------
    def headers(self) -> List[ChannelHeader]:
        return list(self._headers)

    def read_digital(self, index: int) -> np.ndarray:
        """Read the raw digital samples of signal `index`."""
        if not 0 <= index < len(self._headers):
            raise IndexError(f"EDF signal {index} not found in {self._path!r}")
        return np.asarray(self._edf.readSignal(index, digital=True))

    # ------------------------------------------------------------------
    # EDF+ annotations
    # ------------------------------------------------------------------
    def read_annotations(self) -> list[tuple[float, float, str]]:
        """(onset, duration, text) of every EDF+ annotation, in seconds.

        Plain EDF files have none. A missing duration is read as 0.
        """
        onsets, durations, texts = self._edf.readAnnotations()
        return [
            (float(onset), max(float(duration), 0.0), str(text))
            for onset, duration, text in zip(onsets, durations, texts)
        ]

    def close(self) -> None:
        self._edf.close()

    def __enter__(self) -> "EdfFileReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
