"""Trial lists, button counterbalancing and key-press logging for fMRI tasks."""

from .button_mapping import ButtonMapping, determine_button_mapping
from .errors import AbortedByUser, ConfigError, PartitionError, StimulusListError, TaskError
from .key_logging import EventBackend, EventLog, KeyboardBackend, SessionState, log_key_press
from .parameters import load_parameters
from .run_control import run_block, wait_for_trigger
from .trial_list import (
    is_fixation,
    load_or_make_trial_list,
    make_trial_list,
    read_stim_list,
    record_response,
    run_trials,
    write_trial_list,
)

__version__ = "0.1.0"
