import pytest

from edfonda.core.labels import canonicalize, strip_signal_name

ECG = {"ecg", "ekg"}
EEG_CANONICAL = {"a1": ("m1",), "a2": ("m2",), "t7": ("t3",)}


def test_documented_examples():
    assert canonicalize("[ekG]  avl-REF", ECG, "avl", {}) == "avl"
    assert canonicalize("ECG 2", ECG, "ii", {"ii": {"2", "two", "ecg2"}}) == "ii"


def test_signal_name_glued_to_channel_is_not_stripped():
    # "ecg2" is only matched through its alternate spelling
    assert canonicalize("ECG2", ECG, "ii", {"ii": {"2", "two", "ecg2"}}) == "ii"
    assert canonicalize("ECG2", ECG, "ii", {"ii": {"2"}}) is None


@pytest.mark.parametrize(
    "label, channel, expected",
    [
        ("EEG F3-A1", "f3", "f3-a1"),
        ("EEG F3-M1", "f3", "f3-a1"),
        ("eeg  f4 - m2", "f4", "f4-a2"),
        ("EEG (C3)", "c3", "c3"),
        ("C3-REF", "c3", "c3"),
        ("C3-Ref2", "c3", "c3"),
        ("C3*", "c3", "c3"),
        ("T3-M1", "t7", "t7-a1"),
        ("C3+C4", "c3", "c3_plus_c4"),
        ("C3/C4", "c3", "c3_over_c4"),
        ("-C3", "c3", "-c3"),
        ("EEG: Cz", "cz", "cz"),
    ],
)
def test_canonicalize_eeg_labels(label, channel, expected):
    assert canonicalize(label, {"eeg"}, channel, EEG_CANONICAL) == expected


def test_canonicalize_rejects_other_channels():
    assert canonicalize("EEG F3-A1", {"eeg"}, "f4", EEG_CANONICAL) is None
    assert canonicalize("EEG F3", {"eeg"}, "f", EEG_CANONICAL) is None


def test_reference_only_label_does_not_match():
    assert canonicalize("EEG REF", {"eeg"}, "ref", {}) is None


def test_case_insensitive():
    assert canonicalize("eeg c3", {"EEG"}, "C3", {}) == canonicalize("EEG C3", {"eeg"}, "c3", {})


@pytest.mark.parametrize(
    "label, channel",
    [
        ("EEG F3-M1", "f3"),
        ("C3+C4", "c3"),
        ("-C3", "c3"),
        ("C3/C4-REF", "c3"),
        ("[eeg] o1", "o1"),
    ],
)
def test_canonical_labels_are_fixed_points(label, channel):
    once = canonicalize(label, {"eeg"}, channel, EEG_CANONICAL)
    assert once is not None
    assert canonicalize(once, {"eeg"}, channel, EEG_CANONICAL) == once


def test_strip_signal_name_prefers_longest_name():
    assert strip_signal_name("eogs loc", ("eog", "eogs")) == "loc"
    assert strip_signal_name("[ecg] avl", ECG) == "avl"
    assert strip_signal_name("ecgavl", ECG) == "ecgavl"


@pytest.mark.parametrize(
    "label, expected",
    [
        ("EEG C3 REF", "c3"),
        ("EEG C3 - Ref1", "c3"),
        ("C3/REF", "c3"),
        ("EEG C3-REF-A2", "c3-ref-a2"),
    ],
)
def test_only_a_trailing_reference_is_dropped(label, expected):
    assert canonicalize(label, {"eeg"}, "c3", {}) == expected


def test_reference_glued_to_channel_name_is_kept():
    assert canonicalize("C3REF", {"eeg"}, "c3ref", {}) == "c3ref"
    assert canonicalize("C3REF", {"eeg"}, "c3", {}) is None
