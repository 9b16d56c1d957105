# edfonda/core/labels.py
from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Mapping


# Component separators, including their already-canonical spellings.
_SEPARATOR_RE = re.compile(r"(_plus_|_over_|-|\+|/)")
_CANONICAL_SEPARATOR = {"-": "-", "+": "_plus_", "/": "_over_", "_plus_": "_plus_", "_over_": "_over_"}
_REFERENCE_RE = re.compile(r"ref\d*")
# "c3-ref", "c3 ref", "ref"; never a "ref" glued to the channel name
_TRAILING_REFERENCE_RE = re.compile(r"(?:-|\s+|^)ref\d*$")
_DASH_SPACING_RE = re.compile(r"\s*-\s*")
_WHITESPACE_RE = re.compile(r"\s+")


@lru_cache(maxsize=1024)
def _signal_prefix_re(signal_name: str) -> re.Pattern[str]:
    # "[ecg] avl", "ecg avl", "ecg: avl", "ecg-avl", "ecg,avl"
    name = re.escape(signal_name.strip().lower())
    return re.compile(rf"^\[?{name}(?:\]\s*|[\s,:\-]+)(?P<rest>.+)$")


def _normalize(label: str) -> str:
    label = label.strip().lower()
    label = label.replace("(", "").replace(")", "")
    label = label.rstrip("*").strip()
    return _DASH_SPACING_RE.sub("-", label)


def strip_signal_name(label: str, signal_names: Iterable[str]) -> str:
    """Drop a leading signal-name token such as "[ECG] " or "eeg " from `label`."""
    # Longest names first so that "eogs" wins over "eog".
    for name in sorted(signal_names, key=lambda n: (-len(n), n)):
        m = _signal_prefix_re(name).match(label)
        if m is not None:
            return m.group("rest")
    return label


def _split_components(label: str) -> tuple[str, list[str]]:
    """Split into (sign, [part, separator, part, ...])."""
    sign = ""
    if label.startswith("-"):
        sign, label = "-", label[1:]
    elif label.startswith("+"):
        label = label[1:]
    return sign, _SEPARATOR_RE.split(label)


def _strip_reference(tokens: list[str]) -> list[str]:
    # tokens alternate part / separator; only a final reference part is dropped
    if tokens and _REFERENCE_RE.fullmatch(tokens[-1]):
        return tokens[:-2]
    return tokens


def canonicalize(
    label: str,
    signal_names: Iterable[str],
    channel_name: str,
    canonical_names: Mapping[str, Iterable[str]],
) -> str | None:
    """
    Normalize a raw EDF label into an Onda channel name.

    The label is lowercased, whitespace- and parens-stripped, a leading
    signal name (e.g. "[ECG] ") is removed, a trailing generic reference
    ("ref", "ref2", ...) is dropped, each component found among the
    alternates of `canonical_names` is replaced by its canonical name, and
    `+` / `/` become `_plus_` / `_over_`.

    Returns the normalized label when its first component (ignoring a
    leading sign) equals `channel_name`, otherwise None.

    >>> canonicalize("[ekG]  avl-REF", {"ecg", "ekg"}, "avl", {})
    'avl'
    >>> canonicalize("ECG 2", {"ecg", "ekg"}, "ii", {"ii": {"2", "two", "ecg2"}})
    'ii'
    """
    text = strip_signal_name(_normalize(label), signal_names)
    text = _TRAILING_REFERENCE_RE.sub("", text)
    text = _WHITESPACE_RE.sub("", text)

    sign, tokens = _split_components(text)
    tokens = _strip_reference(tokens)
    if not tokens or not tokens[0]:
        return None

    alternates: dict[str, str] = {}
    for canonical, alts in canonical_names.items():
        for alt in alts:
            alternates.setdefault(alt.lower(), canonical.lower())

    parts: list[str] = []
    for i, token in enumerate(tokens):
        if i % 2:
            parts.append(_CANONICAL_SEPARATOR[token])
        else:
            parts.append(alternates.get(token, token))

    if parts[0] != channel_name.strip().lower():
        return None
    return sign + "".join(parts)
