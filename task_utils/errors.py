"""
Exceptions raised by the trial-list, parameter and key-logging helpers.

All of them are fatal for the current run: callers are expected to let them
propagate (after releasing any keyboard queues) rather than retry.
"""


class TaskError(Exception):
    """Base class for task setup / execution failures."""


class ConfigError(TaskError, ValueError):
    """A required parameter is missing or has an unsupported value."""

    def __init__(self, message, missing=()):
        super().__init__(message)
        self.missing = tuple(missing)


class PartitionError(TaskError, ValueError):
    """The expanded trial list cannot be split into runs of equal length."""

    def __init__(self, n_trials, n_runs):
        super().__init__(
            f"Your list of {n_trials} trials cannot be divided into {n_runs} runs of equal length."
        )
        self.n_trials = n_trials
        self.n_runs = n_runs


class StimulusListError(TaskError, ValueError):
    """The stimulus list file could not be read or is malformatted."""


class AbortedByUser(TaskError, RuntimeError):
    """The escape key was pressed while logging key presses."""

    def __init__(self, message="Script execution manually aborted."):
        super().__init__(message)
