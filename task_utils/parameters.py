#!/usr/bin/env python3
"""
Load a task parameter file into a validated, read-only parameter mapping.

The parameter file is plain Python: a list of ``name = value`` assignments,
optionally with comments and simple arithmetic, e.g.::

    stim_list_file = "stimuli/stim_list.tsv"
    num_repetitions = 2
    num_runs = 2
    pre_post = 10        # s of fixation before the first / after the last trial
    stim_dur = 1.5
    fix_dur = 0.5
    stim_randomization = "run"   # "run", "all", or leave out

    scr_dist_mri = 90
    scr_width_mri = 40
    resp_key_mri1 = 1
    resp_key_mri2 = 2
    trigger_key_mri = 5
    resp_inst1 = "index finger"
    resp_inst2 = "middle finger"

    scr_dist_pc = 60
    scr_width_pc = 30
    resp_key_pc1 = "f"
    resp_key_pc2 = "j"
    trigger_key_pc = "s"
    escape_key = "escape"

The file is executed like a script, so only load parameter files you trust.
Names starting with an underscore and imported modules are dropped.

Depending on ``fmri_mode`` the scanner or the computer screen/key settings
are copied to the generic names used by the rest of the package
(``scr_dist``, ``scr_width``, ``resp_key1``, ``resp_key2``, ``trigger_key``).
"""

import os
import runpy
import types
from types import MappingProxyType
from typing import Iterable, Mapping

from .errors import ConfigError

# Keys required regardless of the screen / button mode.
TIMING_FIELDS = ("stim_dur", "fix_dur")

MRI_FIELDS = ("scr_dist_mri", "scr_width_mri", "resp_key_mri1", "resp_key_mri2", "trigger_key_mri", "escape_key")
PC_FIELDS = ("scr_dist_pc", "scr_width_pc", "resp_key_pc1", "resp_key_pc2", "trigger_key_pc", "escape_key")


def require_params(params: Mapping, required: Iterable[str], context: str = "parameters"):
    """Raise ConfigError listing every key of `required` missing from `params`."""
    missing = sorted(set(required) - set(params))
    if missing:
        raise ConfigError(
            f"Required field(s) {', '.join(missing)} missing in the {context}.",
            missing=missing,
        )


def _key_name(value) -> str:
    # Numeric keys (button boxes send '1', '2', '5' ...) are stored as key names.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _read_parameter_file(filename: str) -> dict:
    namespace = runpy.run_path(filename)
    return {
        k: v for k, v in namespace.items()
        if not k.startswith("_") and not isinstance(v, types.ModuleType)
    }


def load_parameters(filename: str, fmri_mode: bool) -> Mapping:
    """Parse `filename` and resolve the mode-specific screen and key settings.

    Args:
      filename: path to the parameter file.
      fmri_mode: True for scanner settings (button box, trigger from the
        scanner), False for testing on a regular computer.

    Returns:
      a read-only mapping with the raw parameters plus the resolved
      ``scr_dist``, ``scr_width``, ``resp_key1``, ``resp_key2``,
      ``resp_keys``, ``trigger_key``, ``escape_key``, ``resp_inst1``,
      ``resp_inst2`` and the derived ``trial_dur``.

    Raises:
      FileNotFoundError if the file does not exist, ConfigError if a
      required field is missing.
    """
    if fmri_mode is None:
        raise ConfigError("No fmri mode has been defined. Set fmri_mode to True or False before parsing parameters.")
    if not os.path.isfile(filename):
        raise FileNotFoundError(f'Your parameter file "{filename}" does not exist.')

    params = _read_parameter_file(filename)

    mode_fields = MRI_FIELDS if fmri_mode else PC_FIELDS
    require_params(params, mode_fields + TIMING_FIELDS, context=f"parameter file {filename}")

    if fmri_mode:
        params["scr_dist"] = params["scr_dist_mri"]
        params["scr_width"] = params["scr_width_mri"]
        params["resp_key1"] = _key_name(params["resp_key_mri1"])
        params["resp_key2"] = _key_name(params["resp_key_mri2"])
        params["trigger_key"] = _key_name(params["trigger_key_mri"])
        # Instructions are written for the button box by default
        require_params(params, ("resp_inst1", "resp_inst2"), context=f"parameter file {filename}")
    else:
        params["scr_dist"] = params["scr_dist_pc"]
        params["scr_width"] = params["scr_width_pc"]
        params["resp_key1"] = _key_name(params["resp_key_pc1"])
        params["resp_key2"] = _key_name(params["resp_key_pc2"])
        params["trigger_key"] = _key_name(params["trigger_key_pc"])
        params["resp_inst1"] = _key_name(params["resp_key_pc1"])
        params["resp_inst2"] = _key_name(params["resp_key_pc2"])

    params["escape_key"] = _key_name(params["escape_key"])
    params["resp_keys"] = (params["resp_key1"], params["resp_key2"])

    # Total trial duration: stimulus presentation + fixation cross
    params["trial_dur"] = params["stim_dur"] + params["fix_dur"]

    print(f'[info] Parameters imported from "{filename}".')
    return MappingProxyType(params)
