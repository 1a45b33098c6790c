#!/usr/bin/env python3
"""
Run one block (scanner run) of a trial list.

Flow per run:
  1. Wait for the scanner trigger; the trigger time is the run start.
  2. For every trial of the run: log key presses until the trial's ideal
     onset, call present(trial), then log key presses until the end of the
     trial and keep the first response key.
  3. Write response / actual onset of the trial back into the trial list.
  4. Keep logging through the post-run fixation (pre_post seconds).

Drawing is not done here: `present` is supplied by the task script and
returns the flip time of the stimulus (same clock as `clock`), or None to
use the time at which present() returned.

If the escape key is pressed AbortedByUser propagates and the trial in
progress is not written to the trial list.
"""

from typing import Callable, Mapping, Optional

import pandas as pd

from .key_logging import EventBackend, SessionState, default_clock, log_key_press
from .trial_list import TRIAL_COL, record_response, run_trials


def wait_for_trigger(params: Mapping, state: SessionState, log, backend, clock) -> float:
    """Block until the trigger key; return the clock time it was seen."""
    log_key_press(params, state, log, trigger_breaks=True, other_keys_break=False,
                  backend=backend, clock=clock)
    return clock.getTime()


def run_block(params: Mapping,
              trial_list: pd.DataFrame,
              run,
              state: SessionState,
              log,
              present: Callable[[dict], Optional[float]],
              backend=None,
              clock=None) -> pd.DataFrame:
    """Run the trials of `run` and fill in their responses (in place)."""
    if backend is None:
        backend = EventBackend()
    if clock is None:
        clock = default_clock()

    trials = run_trials(trial_list, run).to_dict("records")
    if not trials:
        raise ValueError(f"Run {run} has no trials in the trial list.")

    trial_dur = float(params["trial_dur"])
    pre_post = float(params["pre_post"])

    print(f"[info] Run {run}: waiting for trigger '{params['trigger_key']}'")
    run_start = wait_for_trigger(params, state, log, backend, clock)
    print(f"[info] Run {run} started ({len(trials)} trials)")

    def _log_until(run_time):
        return log_key_press(
            params, state, log,
            trigger_breaks=False, other_keys_break=False,
            condition=lambda t: (t - run_start) < run_time,
            backend=backend, clock=clock,
        )[0]

    for trial in trials:
        onset = float(trial["ideal_stim_onset"])
        _log_until(onset)

        t_flip = present(trial)
        if t_flip is None:
            t_flip = clock.getTime()

        response = _log_until(onset + trial_dur)
        record_response(trial_list, trial[TRIAL_COL], response, t_flip - run_start)

    # Post-run fixation
    _log_until(float(trials[-1]["ideal_stim_onset"]) + trial_dur + pre_post)
    print(f"[info] Run {run} complete")
    return trial_list
