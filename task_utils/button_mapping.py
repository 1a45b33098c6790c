"""
Counterbalanced response-button assignment.

Each run uses one of two button maps:
  map 1: response 1 -> (resp_key1, resp_inst1), response 2 -> (resp_key2, resp_inst2)
  map 2: the two (key, instruction) pairs swapped

The map alternates from run to run, and the starting map depends on the
subject's parity, so over a session every physical button is used equally
often for each response and half of the subjects start with each map.
"""

import hashlib
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class ButtonMapping:
    map_number: int
    resp_key1: str
    resp_key2: str
    resp_inst1: str
    resp_inst2: str


def subject_number(sub_num) -> int:
    """Integer id of a subject.

    "3", "003", "sub-003" and 3 are the same subject. Ids that are not
    numbers map to a stable value derived from their SHA-1 digest.
    """
    s = str(sub_num).strip()
    if s.lower().startswith("sub-"):
        s = s[4:]
    try:
        return int(s)
    except ValueError:
        return int(hashlib.sha1(s.encode("utf-8")).hexdigest()[:8], 16)


def subject_parity(sub_num) -> int:
    return subject_number(sub_num) % 2


def determine_button_mapping(params: Mapping, sub_num, run: int) -> ButtonMapping:
    """Return the button map for `sub_num` in (1-based) run `run`."""
    key1, key2 = str(params["resp_key1"]), str(params["resp_key2"])
    inst1, inst2 = str(params["resp_inst1"]), str(params["resp_inst2"])

    if (subject_parity(sub_num) + int(run)) % 2 == 0:
        return ButtonMapping(1, key1, key2, inst1, inst2)
    return ButtonMapping(2, key2, key1, inst2, inst1)
