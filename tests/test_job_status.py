# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import pytest

from hpcjm_lib.job import JobStatus


def test_str_is_uppercase_name():
    assert str(JobStatus.RUNNING) == "RUNNING"
    assert f"{JobStatus.DONE}" == "DONE"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("queued", JobStatus.QUEUED),
        (" Running ", JobStatus.RUNNING),
        ("DONE", JobStatus.DONE),
        ("completing", JobStatus.UNKNOWN),
        ("", JobStatus.UNKNOWN),
    ],
)
def test_from_str(value, expected):
    assert JobStatus.fromStr(value) == expected


def test_ordinals():
    assert JobStatus.UNKNOWN.value == 0
    assert JobStatus.DONE.value == 5
