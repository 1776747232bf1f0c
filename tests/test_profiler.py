from unittest import mock

import pytest

from lenet5.profiler import LAYER_STAGES, Profile


def _sample_profile():
    return Profile(
        conv1=10.0,
        pool1=5.0,
        conv2=20.0,
        pool2=5.0,
        fc1=30.0,
        fc2=20.0,
        softmax=10.0,
        total=100.0,
    )


def test_new_profile_is_zero():
    profile = Profile()
    assert all(getattr(profile, name) == 0.0 for name in LAYER_STAGES)
    assert profile.total == 0.0


@mock.patch("time.monotonic_ns", side_effect=[1_000_000, 3_500_000])
def test_stage_adds_elapsed_time(_clock):
    profile = Profile()
    with profile.stage("conv1"):
        pass
    assert profile.conv1 == pytest.approx(2.5)
    assert profile.total == 0.0


@mock.patch("time.monotonic_ns", side_effect=[0, 1_000_000, 1_000_000, 3_000_000])
def test_stage_accumulates(_clock):
    profile = Profile()
    with profile.stage("fc1"):
        pass
    with profile.stage("fc1"):
        pass
    assert profile.fc1 == pytest.approx(3.0)


def test_stage_records_when_block_raises():
    profile = Profile()
    with pytest.raises(RuntimeError):
        with profile.stage("pool2"):
            raise RuntimeError("boom")
    assert profile.pool2 >= 0.0
    assert profile.conv1 == 0.0


def test_stage_unknown_name():
    profile = Profile()
    with pytest.raises(ValueError):
        with profile.stage("conv3"):
            pass


def test_report_header_and_footer():
    text = _sample_profile().report(10)
    lines = text.splitlines()
    assert lines[0] == ""
    assert lines[1] == "=== Performance Summary ==="
    assert lines[2] == "Images          : 10"
    assert "--- Layer breakdown (ms / % of total) ---" in lines
    assert lines[-1] == "=========================================="


def test_report_lists_every_layer_in_order():
    lines = _sample_profile().report(10).splitlines()
    layer_lines = [line for line in lines if line.split(" ")[0] in LAYER_STAGES]
    assert [line.split(" ")[0] for line in layer_lines] == list(LAYER_STAGES)


def test_report_layer_line_format():
    text = _sample_profile().report(10)
    assert "conv1    :  10.000 ms   10.0%" in text


def test_report_total_time_line():
    text = _sample_profile().report(10)
    assert "Total time      : 100.00 ms" in text


def test_report_rejects_empty_profile():
    with pytest.raises(ValueError):
        Profile().report(10)


def test_report_rejects_no_images():
    with pytest.raises(ValueError):
        _sample_profile().report(0)