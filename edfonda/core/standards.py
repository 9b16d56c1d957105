# edfonda/core/standards.py
"""
Default label and unit tables.

STANDARD_LABELS is an ordered table of `signal_names -> channel specs`
entries. The first signal name is the canonical sensor type. A channel spec
is either a canonical channel name or a `(canonical, alternates)` pair;
alternates found in a label are rewritten to the canonical name.

Channel names follow the 10-20/10-10 EEG montage, the 12-lead ECG and the
AASM polysomnography montage.

STANDARD_UNITS maps Onda unit names to the (lowercase) EDF physical
dimensions that denote them.

Both tables are immutable and safe to share between conversions; they are
passed explicitly to the planner (`labels=` / `units=`), never looked up
implicitly by the core functions.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple, Union

ChannelSpec = Union[str, Tuple[str, Tuple[str, ...]]]
LabelEntry = Tuple[Tuple[str, ...], Tuple[ChannelSpec, ...]]
LabelTable = Tuple[LabelEntry, ...]


STANDARD_LABELS: LabelTable = (
    (
        ("eeg",),
        (
            "nz", "fp1", "fpz", "fp2", "af7", "af3", "afz", "af4", "af8",
            "f9", "f7", "f5", "f3", "f1", "fz", "f2", "f4", "f6", "f8", "f10",
            "ft9", "ft7", "fc5", "fc3", "fc1", "fcz", "fc2", "fc4", "fc6", "ft8", "ft10",
            ("a1", ("m1",)),
            "t9",
            ("t7", ("t3",)),
            "c5", "c3", "c1", "cz", "c2", "c4", "c6",
            ("t8", ("t4",)),
            "t10",
            ("a2", ("m2",)),
            "tp9", "tp7", "cp5", "cp3", "cp1", "cpz", "cp2", "cp4", "cp6", "tp8", "tp10",
            ("p7", ("t5",)),
            "p9", "p5", "p3", "p1", "pz", "p2", "p4", "p6",
            ("p8", ("t6",)),
            "p10", "po7", "po3", "poz", "po4", "po8", "o1", "oz", "o2", "iz",
        ),
    ),
    (
        ("eog", "eogs"),
        (
            ("left", ("eogl", "loc", "lefteye", "leye", "e1", "eog1", "l", "leog", "log", "le")),
            ("right", ("eogr", "roc", "righteye", "reye", "e2", "eog2", "r", "reog", "rog", "re")),
        ),
    ),
    (
        ("ecg", "ekg"),
        (
            ("i", ("1",)),
            ("ii", ("2",)),
            ("iii", ("3",)),
            ("avl", ("ecgl", "ekgl", "ecg", "ekg", "l")),
            ("avr", ("ekgr", "ecgr", "r")),
            "avf",
            "v1", "v2", "v3", "v4", "v5", "v6", "v7", "v8", "v9",
            "v1r", "v2r", "v3r", "v4r", "v5r", "v6r", "v7r", "v8r", "v9r",
            "x", "y", "z",
        ),
    ),
    (
        ("emg",),
        (
            ("chin", ("chin1", "chn", "mentalis", "subm", "submental")),
            ("intercostal", ("ic",)),
            ("left_anterior_tibialis", ("lat", "lleg", "leftlimb", "lleg1", "leftleg", "leftlegs")),
            ("right_anterior_tibialis", ("rat", "rleg", "rightlimb", "rleg1", "rightleg", "rightlegs")),
            ("left_limb", ("limb1", "lleg2")),
            ("right_limb", ("limb2", "rleg2")),
        ),
    ),
    (
        ("heart_rate",),
        (("heart_rate", ("hr", "pulse", "pulserate", "heartrate", "pr")),),
    ),
    (
        ("snore",),
        ("snore",),
    ),
    (
        ("positive_airway_pressure", "pap"),
        (
            ("ipap", ("cpap_ipap",)),
            ("epap", ("cpap_epap",)),
            ("pressure", ("cpap", "cpap_pressure", "pap")),
        ),
    ),
    (
        ("pap_device_leak", "leak"),
        (("pap_device_leak", ("leak", "leakage", "cpap_leak")),),
    ),
    (
        ("pap_device_flow", "cpap_flow", "pap_flow"),
        (("pap_device_flow", ("flow", "cpap_flow", "pap_flow")),),
    ),
    (
        ("respiratory_effort", "resp", "effort"),
        (
            ("chest", ("thorax", "thoracic", "thor")),
            ("abdomen", ("abdo", "abdominal", "abd", "abdom")),
        ),
    ),
    (
        ("tidal_volume", "tvol"),
        (("tidal_volume", ("tvol", "tidal")),),
    ),
    (
        ("spo2", "sao2"),
        (("spo2", ("sao2", "osat", "o2sat", "oxygensaturation")),),
    ),
    (
        ("etco2",),
        (("etco2", ("capno", "co2")),),
    ),
    (
        ("pco2", "tcco2"),
        (("pco2", ("tcco2", "tcpco2")),),
    ),
    (
        ("position", "pos"),
        (("position", ("pos", "body", "bodyposition")),),
    ),
    (
        ("accelerometer", "accel"),
        ("x", "y", "z"),
    ),
    (
        ("light",),
        ("light",),
    ),
)


STANDARD_UNITS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "nanovolt": ("nv",),
    "microvolt": ("uv", "µv", "μv", "mu", "microvolts"),
    "millivolt": ("mv", "millivolts"),
    "volt": ("v", "volts"),
    "percent": ("%", "pct", "percentage"),
    "beats_per_minute": ("bpm", "beats/min", "beats/minute"),
    "breaths_per_minute": ("brpm", "breaths/min"),
    "degrees_celsius": ("°c", "degc", "deg c", "celsius"),
    "degrees_fahrenheit": ("°f", "degf", "deg f", "fahrenheit"),
    "centimeter_of_water": ("cmh2o", "cm h2o", "cmh20"),
    "millimeter_of_mercury": ("mmhg",),
    "liter": ("l", "liters"),
    "milliliter": ("ml", "milliliters"),
    "liter_per_minute": ("l/m", "l/min", "lpm", "liters/min"),
    "liter_per_second": ("l/s", "l/sec", "lps"),
    "ohm": ("ohms", "Ω"),
    "kiloohm": ("kohm", "kohms", "kΩ"),
    "lux": ("lx",),
    "decibel": ("db",),
    "second": ("s", "sec", "seconds"),
    "millisecond": ("ms", "msec"),
    "hertz": ("hz",),
    "gravity": ("g",),
    "unknown": ("n/a", "na", "none", "-"),
})
