#!/usr/bin/env python3
"""
Log key presses (scanner triggers, escape, responses) until an exit condition.

log_key_press() blocks the caller, writes every key event to the event log,
and returns the first pressed key that is one of the task's response keys.

Input is read through a small backend object with two methods:
  flush()  drop any pending key presses
  poll()   return the names of keys pressed since the last poll
           (the backend may wait a short tick when nothing was pressed)

KeyboardBackend reads a PsychoPy hardware Keyboard (optionally a specific
device, which is needed for some button boxes / Mac keyboards),
EventBackend reads the default keyboard through psychopy.event. Tests use
scripted fakes.

Times are taken from an injected clock (anything with getTime()) and logged
relative to SessionState.script_start, so the log of a session is
reproducible without touching a real clock.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Mapping, Optional, Tuple

from .errors import AbortedByUser

LOG_HEADER = ("EVENT_TYPE", "EVENT_NAME", "DATETIME", "EXP_ONSET", "ACTUAL_ONSET", "DELTA", "EVENT_ID")

# Poll tick while no key is pressed (s)
DEFAULT_TICK_S = 0.0005


def date_time_str() -> str:
    return datetime.now().strftime("%Y-%m-%d-%H:%M:%S.%f")[:-3]


def default_clock():
    from psychopy import core
    return core.monotonicClock


# -----------------------------
# Session state / event log
# -----------------------------

@dataclass
class SessionState:
    """Per-session bookkeeping shared by all logging calls."""
    script_start: float = 0.0
    pressed_abort_key: bool = False

    @classmethod
    def start(cls, clock=None) -> "SessionState":
        clock = clock if clock is not None else default_clock()
        return cls(script_start=float(clock.getTime()))


class EventLog:
    """Append-only, tab-separated event log.

    One line per log_event() call:
      EVENT_TYPE  EVENT_NAME  DATETIME  EXP_ONSET  ACTUAL_ONSET  DELTA  EVENT_ID
    The header is written when the file is new. Lines are flushed as they are
    written so the log survives a crash.
    """

    def __init__(self, path: str):
        self.path = str(path)
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        is_new = (not os.path.exists(self.path)) or os.path.getsize(self.path) == 0
        self._fh = open(self.path, "a", encoding="utf-8", buffering=1, newline="")
        if is_new:
            self._fh.write("\t".join(LOG_HEADER) + "\n")

    @staticmethod
    def _fmt(value) -> str:
        if isinstance(value, float):
            return f"{value:.4f}"
        return str(value)

    def log_event(self, event_type, event_name, date_time, exp_onset, actual_onset, delta, event_id):
        fields = (event_type, event_name, date_time, exp_onset, actual_onset, delta, event_id)
        self._fh.write("\t".join(self._fmt(f) for f in fields) + "\n")

    def close(self):
        self._fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


# -----------------------------
# Input backends
# -----------------------------

class KeyboardBackend:
    """PsychoPy hardware Keyboard; `device` selects the input device (-1: default)."""

    def __init__(self, device: int = -1, tick: float = DEFAULT_TICK_S, kb=None):
        if kb is None:
            from psychopy.hardware import keyboard
            kb = keyboard.Keyboard(device=device)
        self.kb = kb
        self.tick = tick

    def flush(self):
        self.kb.clearEvents()

    def poll(self) -> List[str]:
        keys = self.kb.getKeys(waitRelease=False, clear=True)
        if not keys:
            from psychopy import core
            core.wait(self.tick)
        return [k.name for k in keys]


class EventBackend:
    """Default keyboard through psychopy.event (needs an open window)."""

    def __init__(self, tick: float = DEFAULT_TICK_S):
        from psychopy import core, event
        self._core = core
        self._event = event
        self.tick = tick

    def flush(self):
        self._event.clearEvents()

    def poll(self) -> List[str]:
        keys = self._event.getKeys()
        if not keys:
            self._core.wait(self.tick)
        return list(keys)


# -----------------------------
# Logging loop
# -----------------------------

def _response_keys(params: Mapping):
    keys = params.get("resp_keys")
    if keys is None:
        keys = (params["resp_key1"], params["resp_key2"])
    return {str(k) for k in keys}


def log_key_press(params: Mapping,
                  state: SessionState,
                  log,
                  trigger_breaks: bool = True,
                  other_keys_break: bool = False,
                  condition: Optional[Callable[[float], bool]] = None,
                  backend=None,
                  clock=None) -> Tuple[Optional[str], SessionState]:
    """Log key presses until `condition` fails or a breaking key is pressed.

    Args:
      params: parameter mapping with trigger_key, escape_key and resp_keys
        (or resp_key1 / resp_key2).
      state: session state; script_start is the zero of the logged times.
      log: event log (anything with log_event()).
      trigger_breaks: return as soon as the trigger key is seen.
      other_keys_break: return as soon as any other key is seen (useful to
        pass instruction screens).
      condition: called with the current clock time before every poll, the
        loop continues while it is true. None polls until a key breaks it.
      backend: input backend (default: EventBackend()).
      clock: object with getTime() (default: psychopy monotonic clock).

    Returns:
      (first_key, state): first pressed key that is a response key, or None.
      Every key is logged, including the ones after first_key.

    Raises:
      AbortedByUser when the escape key is pressed (state.pressed_abort_key
      is set first).
    """
    if backend is None:
        backend = EventBackend()
    if clock is None:
        clock = default_clock()

    trigger_key = str(params["trigger_key"])
    escape_key = str(params["escape_key"])
    resp_keys = _response_keys(params)

    first_key = None

    # Stale presses from before the call are never logged
    backend.flush()

    while condition is None or condition(clock.getTime()):
        for key in backend.poll():
            key = str(key)
            elapsed = clock.getTime() - state.script_start

            if key == trigger_key:
                log.log_event("PULSE", "Trigger", date_time_str(), "-", elapsed, "-", key)
                if trigger_breaks:
                    return first_key, state

            elif key == escape_key:
                log.log_event("RESP", "Escape", date_time_str(), "-", elapsed, "-", key)
                state.pressed_abort_key = True
                backend.flush()
                raise AbortedByUser()

            else:
                log.log_event("RESP", "KeyPress", date_time_str(), "-", elapsed, "-", key)
                if first_key is None and key in resp_keys:
                    first_key = key
                if other_keys_break:
                    return first_key, state

    return first_key, state
