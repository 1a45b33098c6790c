from __future__ import annotations

import pytest

from task_utils.errors import ConfigError
from task_utils.parameters import load_parameters

PARAM_FILE = """\
import math

# Trial list
stim_list_file = "stimuli/stim_list.tsv"
num_repetitions = 2
num_runs = 2
pre_post = 10
stim_randomization = "run"

# Timing (s)
stim_dur = 1.5
fix_dur = math.floor(0.9) + 0.5
_scratch = 3

# Scanner
scr_dist_mri = 90
scr_width_mri = 40
resp_key_mri1 = 1
resp_key_mri2 = 2
trigger_key_mri = 5
resp_inst1 = "index finger"
resp_inst2 = "middle finger"

# Computer
scr_dist_pc = 60
scr_width_pc = 30
resp_key_pc1 = "f"
resp_key_pc2 = "j"
trigger_key_pc = "s"
escape_key = "escape"
"""


@pytest.fixture
def param_file(tmp_path):
    path = tmp_path / "parameters.py"
    path.write_text(PARAM_FILE, encoding="utf-8")
    return path


def test_fmri_mode(param_file):
    p = load_parameters(str(param_file), fmri_mode=True)

    assert p["scr_dist"] == 90 and p["scr_width"] == 40
    assert p["resp_key1"] == "1" and p["resp_key2"] == "2"
    assert p["resp_keys"] == ("1", "2")
    assert p["trigger_key"] == "5"
    assert p["escape_key"] == "escape"
    assert p["resp_inst1"] == "index finger"
    assert p["trial_dur"] == pytest.approx(2.0)
    assert p["stim_randomization"] == "run"


def test_pc_mode_uses_key_names_as_instructions(param_file):
    p = load_parameters(str(param_file), fmri_mode=False)

    assert p["scr_dist"] == 60
    assert p["resp_keys"] == ("f", "j")
    assert p["trigger_key"] == "s"
    assert p["resp_inst1"] == "f" and p["resp_inst2"] == "j"


def test_parameters_are_read_only(param_file):
    p = load_parameters(str(param_file), fmri_mode=True)
    with pytest.raises(TypeError):
        p["num_runs"] = 3


def test_private_names_and_modules_are_dropped(param_file):
    p = load_parameters(str(param_file), fmri_mode=True)
    assert "_scratch" not in p
    assert "math" not in p
    assert not any(k.startswith("__") for k in p)


def test_missing_mode_field(tmp_path):
    path = tmp_path / "parameters.py"
    path.write_text(PARAM_FILE.replace("trigger_key_mri = 5\n", ""), encoding="utf-8")

    with pytest.raises(ConfigError) as exc:
        load_parameters(str(path), fmri_mode=True)
    assert exc.value.missing == ("trigger_key_mri",)

    # The computer settings are still complete
    assert load_parameters(str(path), fmri_mode=False)["trigger_key"] == "s"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_parameters(str(tmp_path / "nope.py"), fmri_mode=True)


def test_mode_required(param_file):
    with pytest.raises(ConfigError):
        load_parameters(str(param_file), fmri_mode=None)
