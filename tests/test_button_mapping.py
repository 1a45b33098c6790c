from __future__ import annotations

from collections import Counter

import pytest

from task_utils.button_mapping import ButtonMapping, determine_button_mapping, subject_number, subject_parity


@pytest.mark.parametrize("sub", [1, 2, 3, 10, 25])
def test_map_alternates_across_consecutive_runs(params, sub):
    maps = [determine_button_mapping(params, sub, run).map_number for run in range(1, 9)]
    for a, b in zip(maps, maps[1:]):
        assert a != b


def test_subjects_of_different_parity_start_differently(params):
    assert determine_button_mapping(params, 1, 1).map_number != determine_button_mapping(params, 2, 1).map_number
    assert determine_button_mapping(params, 1, 1).map_number == determine_button_mapping(params, 3, 1).map_number


def test_map_contents(params):
    m1 = determine_button_mapping(params, 1, 1)
    m2 = determine_button_mapping(params, 1, 2)

    assert m1 == ButtonMapping(1, "1", "2", "index finger", "middle finger")
    # Key and its instruction move together
    assert m2 == ButtonMapping(2, "2", "1", "middle finger", "index finger")


def test_deterministic(params):
    assert determine_button_mapping(params, 7, 3) == determine_button_mapping(params, 7, 3)


def test_each_key_used_equally_for_each_response(params):
    used = Counter(determine_button_mapping(params, 4, run).resp_key1 for run in range(1, 7))
    assert used == Counter({"1": 3, "2": 3})


def test_subject_id_formats(params):
    assert subject_parity("003") == subject_parity(3) == 1
    assert subject_parity("pilot-A") in (0, 1)
    assert subject_parity("pilot-A") == subject_parity("pilot-A")
    assert determine_button_mapping(params, "003", 1) == determine_button_mapping(params, 3, 1)


@pytest.mark.parametrize("raw", [4, "4", "004", " 004 ", "sub-004", "SUB-004"])
def test_subject_number_normalises_ids(raw):
    assert subject_number(raw) == 4


def test_prefixed_id_keeps_the_same_map(params):
    for n in range(1, 7):
        assert subject_parity(f"sub-{n:03d}") == subject_parity(n)
        assert determine_button_mapping(params, f"sub-{n:03d}", 1) == determine_button_mapping(params, n, 1)


def test_non_numeric_ids_are_stable():
    assert subject_number("pilotA") == subject_number(" pilotA ") == subject_number("sub-pilotA")
    assert subject_number("pilotA") != subject_number("pilotB")
