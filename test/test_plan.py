from dataclasses import replace

import pytest

from edfonda.core import (
    AmbiguousChannelWarning,
    ChannelMatcher,
    ConversionError,
    InvalidPlan,
    LabelMatcher,
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

AMBIGUOUS_LABELS = (
    (("first",), ("x",)),
    (("second",), ("x", "y")),
)


@pytest.mark.parametrize(
    "label, expected",
    [
        ("EEG F3-A1", ("eeg", "f3-a1")),
        ("EEG C4-M1", ("eeg", "c4-a1")),
        ("ECG 2", ("ecg", "ii")),
        ("[ekG]  avl-REF", ("ecg", "avl")),
        ("EOG LOC", ("eog", "left")),
        ("E2", ("eog", "right")),
        ("Chin1", ("emg", "chin")),
        ("SpO2", ("spo2", "spo2")),
        ("Pulse", ("heart_rate", "heart_rate")),
        ("Thorax", ("respiratory_effort", "chest")),
    ],
)
def test_match_label_standard_table(label, expected):
    assert match_label(label) == expected


def test_match_label_no_match():
    assert match_label("Mystery Channel") is None


def test_first_match_wins():
    assert match_label("X", AMBIGUOUS_LABELS) == ("first", "x")
    assert match_label("Y", AMBIGUOUS_LABELS) == ("second", "y")


def test_all_matches_lists_every_entry(make_header):
    matcher = LabelMatcher(AMBIGUOUS_LABELS)
    matches = matcher.all_matches(make_header("X"))
    assert [m.sensor_type for m in matches] == ["first", "second"]


def test_strict_mode_warns_on_ambiguous_label(make_header):
    with pytest.warns(AmbiguousChannelWarning):
        row = plan_channel(make_header("X"), labels=AMBIGUOUS_LABELS, strict=True)
    assert row.sensor_type == "first"


def test_plan_channel_matched(make_header):
    row = plan_channel(make_header("EEG C3", "uV"), recording="rec-1")

    assert row.sensor_type == "eeg"
    assert row.sensor_label == "eeg"
    assert row.channel == "c3"
    assert row.sample_unit == "microvolt"
    assert row.sample_type == "int16"
    assert row.sample_rate == 256.0
    assert row.sample_resolution_in_unit == pytest.approx(6400.0 / 65535.0)
    assert row.recording == "rec-1"
    assert row.error is None
    assert row.header == make_header("EEG C3", "uV")


def test_plan_channel_unmatched_is_not_an_error(make_header):
    row = plan_channel(make_header("Mystery"))

    assert row.sensor_type is None
    assert row.channel is None
    assert row.sample_rate is None
    assert row.error is None
    assert row.label == "Mystery"
    assert not row.matched


def test_plan_channel_captures_encoding_failure(make_header):
    row = plan_channel(make_header("EEG C3", digital_minimum=5, digital_maximum=5))

    assert isinstance(row.error, ConversionError)
    assert row.error.kind == "SampleInfoError"
    assert row.error.context["label"] == "EEG C3"
    assert row.sensor_type is None
    assert row.channel is None


def test_plan_channel_captures_unit_failure(make_header):
    row = plan_channel(make_header("EEG C3", "???"))
    assert row.error is not None
    assert row.error.kind == "SampleInfoError"
    assert "???" in row.error.message


def transducer_for_generic_labels(label, transducer_type):
    return transducer_type if label.startswith("Chan") else label


def test_preprocess_labels_rewrites_the_matched_label(make_header):
    header = replace(make_header("Chan 3"), transducer_type="EEG C3")
    assert not plan_channel(header).matched

    row = plan_channel(header, preprocess_labels=transducer_for_generic_labels)
    assert (row.sensor_type, row.channel) == ("eeg", "c3")
    assert row.label == "Chan 3"
    assert row.transducer_type == "EEG C3"


def test_plan_file_threads_preprocess_labels(make_header):
    headers = [
        replace(make_header("Chan 1"), transducer_type="EEG C3"),
        replace(make_header("Chan 2"), transducer_type="EEG C4"),
        make_header("EEG Cz"),
    ]
    plan = plan_file(headers, preprocess_labels=transducer_for_generic_labels)
    assert [r.channel for r in plan] == ["c3", "c4", "cz"]
    assert [r.label for r in plan] == ["Chan 1", "Chan 2", "EEG Cz"]


class SkinTemperature:
    def try_match(self, header):
        if header.label.lower().startswith("temp"):
            return MatchResult(sensor_type="temperature", channel="skin")
        return None


def test_custom_matchers_run_after_label_table(make_header):
    matcher = SkinTemperature()
    assert isinstance(matcher, ChannelMatcher)

    row = plan_channel(make_header("Temp", "degC"), custom_matchers=[matcher])
    assert (row.sensor_type, row.channel) == ("temperature", "skin")
    assert row.sample_unit == "degrees_celsius"

    # the label table takes precedence
    row = plan_channel(make_header("EEG C3"), custom_matchers=[matcher])
    assert row.sensor_type == "eeg"


def test_plan_file_groups_and_sorts(make_header):
    headers = [
        make_header("EEG F3-A1", "uV"),
        make_header("ECG II", "mV", physical_minimum=-10.0, physical_maximum=10.0),
        make_header("EEG F4-A2", "uV"),
        make_header("Mystery"),
        make_header("EEG C3", "uV", samples_per_record=128),
    ]
    plan = plan_file(headers)

    assert [r.edf_signal_index for r in plan] == [0, 2, 1, 4, 3]
    assert [r.onda_signal_index for r in plan] == [0, 0, 1, 2, None]
    assert [r.channel for r in plan] == ["f3-a1", "f4-a2", "ii", "c3", None]


def test_group_rows_stable_under_order_preserving_permutation(make_header):
    a0 = plan_channel(make_header("EEG F3"))
    a1 = plan_channel(make_header("EEG F4"))
    b0 = plan_channel(make_header("ECG II", "mV"))

    def indices(rows):
        return {r.label: r.onda_signal_index for r in group_rows(rows)}

    assert indices([a0, b0, a1]) == indices([a0, a1, b0]) == {
        "EEG F3": 0,
        "EEG F4": 0,
        "ECG II": 1,
    }


def test_group_rows_follows_first_occurrence_not_key_order(make_header):
    rows = [plan_channel(make_header("ECG II", "mV")), plan_channel(make_header("EEG F3"))]
    grouped = group_rows(rows)
    assert [r.onda_signal_index for r in grouped] == [0, 1]


def test_group_rows_skips_incomplete_and_failed_rows(make_header):
    ok = plan_channel(make_header("EEG F3"))
    failed = ok.with_error(ConversionError("SampleInfoError", "boom"))
    unmatched = plan_channel(make_header("Mystery"))

    grouped = group_rows([unmatched, failed, ok])
    assert [r.onda_signal_index for r in grouped] == [None, None, 0]
    assert [r.edf_signal_index for r in grouped] == [0, 1, 2]


def test_group_rows_accepts_v1_key_names(make_header):
    rows = [plan_channel(make_header("EEG F3")), plan_channel(make_header("EEG F4", "mV"))]
    grouped = group_rows(rows, group_keys=("kind",))
    assert [r.onda_signal_index for r in grouped] == [0, 0]


def test_group_rows_rejects_unknown_keys(make_header):
    with pytest.raises(InvalidPlan):
        group_rows([plan_channel(make_header("EEG F3"))], group_keys=("colour",))


def test_v1_row_upgrade(make_header):
    v2 = plan_channel(make_header("EEG F3"))
    columns = v2.to_dict()
    columns["kind"] = columns.pop("sensor_type")
    del columns["sensor_label"]
    v1 = PlanRowV1(**columns)

    upgraded = upgrade_plan_row(v1)
    assert isinstance(upgraded, PlanRow)
    assert upgraded == v2


def test_plan_row_from_mapping_reads_both_generations(make_header):
    v2 = plan_channel(make_header("EEG F3"))
    assert plan_row_from_mapping(v2.to_dict()) == v2

    columns = v2.to_dict()
    columns["kind"] = columns.pop("sensor_type")
    del columns["sensor_label"]
    assert plan_row_from_mapping(columns) == v2


def test_plan_row_from_mapping_rejects_unknown_columns(make_header):
    columns = plan_channel(make_header("EEG F3")).to_dict()
    columns["colour"] = "red"
    with pytest.raises(InvalidPlan):
        plan_row_from_mapping(columns)


def test_plan_row_error_must_be_structured(make_header):
    row = plan_channel(make_header("EEG F3"))
    with pytest.raises(InvalidPlan):
        replace(row, error="boom")
