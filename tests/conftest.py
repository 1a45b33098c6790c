from __future__ import annotations

from types import MappingProxyType

import pandas as pd
import pytest


@pytest.fixture
def params():
    """Parameters as load_parameters() resolves them (fMRI mode)."""
    return MappingProxyType({
        "stim_list_file": "stim_list.tsv",
        "num_repetitions": 2,
        "num_runs": 2,
        "pre_post": 10,
        "stim_dur": 1.5,
        "fix_dur": 0.5,
        "trial_dur": 2.0,
        "resp_key1": "1",
        "resp_key2": "2",
        "resp_keys": ("1", "2"),
        "resp_inst1": "index finger",
        "resp_inst2": "middle finger",
        "trigger_key": "5",
        "escape_key": "escape",
    })


@pytest.fixture
def stim_table():
    """4 images + 1 fixation-only trial, with an extra column."""
    return pd.DataFrame({
        "stimuli": ["face_01.png", "face_02.png", "house_01.png", "house_02.png", "fixation"],
        "condition": ["face", "face", "house", "house", "baseline"],
    })
