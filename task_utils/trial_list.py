#!/usr/bin/env python3
"""
Build the complete, per-participant trial list from a stimulus list.

What this module does:
- Reads a tab-separated stimulus list (one row per stimulus, mandatory
  'stimuli' column, any extra columns are kept as they are).
- Repeats the list `num_repetitions` times and splits it into `num_runs` runs
  of equal length (PartitionError otherwise).
- Optionally shuffles the trials within each run ("run") or across the whole
  task ("all").
- Adds run numbers (unless the stimulus list already has a 'run' column),
  ideal stimulus onsets relative to the run start, the counterbalanced button
  mapping of each run, the subject number and empty response fields.

The trial list is created once per participant (first run) and saved; later
runs read it back instead of generating a new one, see load_or_make_trial_list.

Trial list schema (one row per trial, in presentation order):
- <stimulus list columns>, e.g. stimuli, condition, ...
- run, trial_nb, but_map, resp_key1, resp_key2, resp_inst1, resp_inst2,
  sub_num, ideal_stim_onset, response, stim_onset
"""

import os
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from .button_mapping import determine_button_mapping, subject_number
from .errors import ConfigError, PartitionError, StimulusListError
from .parameters import require_params

REQUIRED_FIELDS = ("stim_list_file", "num_repetitions", "num_runs", "pre_post", "trial_dur")
RANDOMIZATION_MODES = (None, "", "run", "all")

STIM_COL = "stimuli"
RUN_COL = "run"
TRIAL_COL = "trial_nb"

# Stimulus value meaning "show only the fixation cross for this trial"
FIXATION_STIM = "fixation"

# Columns read back as key names, not numbers ('1' must stay '1')
_KEY_COLS = ("resp_key1", "resp_key2", "resp_inst1", "resp_inst2", "response")


def is_fixation(stim) -> bool:
    return str(stim).strip().lower() == FIXATION_STIM


# -----------------------------
# Stimulus list
# -----------------------------

def read_stim_list(path: str) -> pd.DataFrame:
    """Read the tab-separated stimulus list at `path`."""
    try:
        stim_table = pd.read_csv(path, sep="\t")
    except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise StimulusListError(f"Error reading stimuli list from the TSV file {path}: {e}") from e
    _check_stim_table(stim_table, path)
    return stim_table


def _check_stim_table(stim_table: pd.DataFrame, source: str = "stimulus table"):
    if STIM_COL not in stim_table.columns:
        raise StimulusListError(f"{source} missing required column: {STIM_COL}")
    if stim_table.empty:
        raise StimulusListError(f"{source} contains no rows.")


# -----------------------------
# Randomization helpers
# -----------------------------

def default_rng(params: Mapping, sub_num) -> np.random.Generator:
    """Subject-specific generator when `random_seed` is set, else fresh entropy."""
    seed = params.get("random_seed")
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(int(seed) * 100_000 + subject_number(sub_num))


def shuffled_order(n_trials: int, trials_per_run: int, mode, rng: np.random.Generator) -> np.ndarray:
    """Row order after randomization.

    "run": each block of `trials_per_run` rows is permuted on its own, no row
    leaves its block. "all": one permutation of every row. Otherwise the
    identity order.
    """
    if mode == "run":
        blocks = [start + rng.permutation(trials_per_run) for start in range(0, n_trials, trials_per_run)]
        return np.concatenate(blocks) if blocks else np.arange(0)
    if mode == "all":
        return rng.permutation(n_trials)
    return np.arange(n_trials)


# -----------------------------
# Trial list
# -----------------------------

def _count_param(params: Mapping, key: str) -> int:
    value = params[key]
    # 2.0 is accepted, 2.5 is not
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigError(f"{key} must be a whole number. Got: {value!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be > 0. Got: {value}")
    return int(value)


def make_trial_list(params: Mapping, sub_num, stim_table: Optional[pd.DataFrame] = None,
                    rng: Optional[np.random.Generator] = None) -> pd.DataFrame:
    """Generate the full trial list for subject `sub_num`.

    Args:
      params: parameter mapping (see parameters.load_parameters). Must contain
        stim_list_file, num_repetitions, num_runs, pre_post and trial_dur;
        stim_randomization and random_seed are optional.
      sub_num: subject number (stored in every row, drives the button map).
      stim_table: stimulus list; read from params['stim_list_file'] if None.
      rng: numpy Generator used for shuffling; see default_rng.

    Raises:
      ConfigError: missing or invalid parameters.
      PartitionError: the repeated list cannot be split into equal runs.
      StimulusListError: unreadable stimulus list / no 'stimuli' column.
    """
    require_params(params, REQUIRED_FIELDS, context="params mapping")

    mode = params.get("stim_randomization")
    if mode not in RANDOMIZATION_MODES:
        raise ConfigError(f"stim_randomization must be 'run', 'all' or unset. Got: {mode!r}")

    n_reps = _count_param(params, "num_repetitions")
    n_runs = _count_param(params, "num_runs")

    if stim_table is None:
        stim_table = read_stim_list(params["stim_list_file"])
    else:
        _check_stim_table(stim_table)

    # Duplicate the list of stimuli based on the declared number of repetitions
    stim_list = pd.concat([stim_table] * n_reps, ignore_index=True)
    n_trials = len(stim_list)

    if n_trials % n_runs != 0:
        raise PartitionError(n_trials, n_runs)
    trials_per_run = n_trials // n_runs

    if rng is None:
        rng = default_rng(params, sub_num)
    order = shuffled_order(n_trials, trials_per_run, mode, rng)
    stim_list = stim_list.iloc[order].reset_index(drop=True)

    # A run column in the stimulus list is trusted as it is
    if RUN_COL not in stim_list.columns:
        stim_list[RUN_COL] = np.repeat(np.arange(1, n_runs + 1), trials_per_run)

    # Ideal onsets restart at pre_post in every run
    pos_in_run = stim_list.groupby(RUN_COL, sort=False).cumcount().to_numpy()
    ideal_onsets = float(params["pre_post"]) + pos_in_run * float(params["trial_dur"])

    mappings = {run: determine_button_mapping(params, sub_num, run) for run in stim_list[RUN_COL].unique()}
    run_maps = [mappings[run] for run in stim_list[RUN_COL]]

    trial_list = stim_list.copy()
    trial_list[TRIAL_COL] = np.arange(1, n_trials + 1)
    trial_list["but_map"] = [m.map_number for m in run_maps]
    trial_list["resp_key1"] = [m.resp_key1 for m in run_maps]
    trial_list["resp_key2"] = [m.resp_key2 for m in run_maps]
    trial_list["resp_inst1"] = [m.resp_inst1 for m in run_maps]
    trial_list["resp_inst2"] = [m.resp_inst2 for m in run_maps]
    trial_list["sub_num"] = sub_num
    trial_list["ideal_stim_onset"] = ideal_onsets
    # Placeholders filled in while the task runs
    trial_list["response"] = pd.Series([np.nan] * n_trials, dtype=object)
    trial_list["stim_onset"] = np.nan

    return trial_list


def run_trials(trial_list: pd.DataFrame, run) -> pd.DataFrame:
    """Trials of `run`, in presentation order."""
    return trial_list[trial_list[RUN_COL] == run]


def record_response(trial_list: pd.DataFrame, trial_nb: int, response, stim_onset) -> None:
    """Write the response and actual onset of trial `trial_nb` in place.

    Only the row with that trial number is touched.
    """
    idx = trial_list.index[trial_list[TRIAL_COL] == trial_nb]
    if len(idx) != 1:
        raise KeyError(f"Trial {trial_nb} not found in trial list.")
    if trial_list["response"].dtype != object:
        trial_list["response"] = trial_list["response"].astype(object)
    trial_list.loc[idx[0], "response"] = np.nan if response is None else response
    trial_list.loc[idx[0], "stim_onset"] = np.nan if stim_onset is None else float(stim_onset)


# -----------------------------
# Persistence
# -----------------------------

def write_trial_list(trial_list: pd.DataFrame, path: str) -> None:
    """Write the trial list as TSV, atomically when possible.

    Writes to a temporary file and renames it into place so that a crash
    never leaves a half-written trial list behind.
    """
    path = str(path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    tmp = path + ".tmp"
    try:
        trial_list.to_csv(tmp, sep="\t", index=False)
        with open(tmp, "ab") as fh:
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def read_trial_list(path: str) -> pd.DataFrame:
    return pd.read_csv(path, sep="\t", dtype={c: object for c in _KEY_COLS})


def load_or_make_trial_list(params: Mapping, sub_num, path: str,
                            rng: Optional[np.random.Generator] = None) -> pd.DataFrame:
    """Return the participant's saved trial list, creating it on first use."""
    if os.path.isfile(path):
        print(f"[info] Trial list loaded from: {path}")
        return read_trial_list(path)

    trial_list = make_trial_list(params, sub_num, rng=rng)
    write_trial_list(trial_list, path)
    print(f"[save] trial list -> {path}")
    return trial_list
