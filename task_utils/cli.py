#!/usr/bin/env python3
"""
Command line entry point.

Usage:
    task-utils make-trial-list params.py --sub 1            # fMRI keys
    task-utils make-trial-list params.py --sub 1 --pc       # computer keys
    task-utils make-trial-list params.py --sub 1 --out my_list.tsv

The trial list is written once per participant; running the command again
for the same participant prints the saved list instead of generating a new one
(use --force to regenerate).
"""

import argparse
import os
import sys
from types import MappingProxyType

from .errors import TaskError
from .parameters import load_parameters
from .trial_list import RUN_COL, load_or_make_trial_list


def _canonicalize_sub(sub: str) -> str:
    s = str(sub).strip()
    if s.lower().startswith("sub-"):
        s = s[4:]
    # pad digits to 3 (BIDS-style sub-001)
    if s.isdigit() and len(s) < 3:
        s = s.zfill(3)
    return s


def default_trial_list_path(out_dir: str, sub: str) -> str:
    sub = _canonicalize_sub(sub)
    return os.path.join(out_dir, f"sub-{sub}", f"sub-{sub}_trial_list.tsv")


def make_trial_list_cmd(args) -> int:
    params = load_parameters(args.params, fmri_mode=not args.pc)
    if args.seed is not None:
        params = MappingProxyType(dict(params, random_seed=args.seed))

    sub = _canonicalize_sub(args.sub)
    sub_num = int(sub) if sub.isdigit() else sub

    out_path = args.out or default_trial_list_path(args.out_dir, sub)
    if args.force and os.path.isfile(out_path):
        os.remove(out_path)
        print(f"[warn] Removed existing trial list: {out_path}")

    trial_list = load_or_make_trial_list(params, sub_num, out_path)
    for run, run_df in trial_list.groupby(RUN_COL, sort=False):
        print(f"[info] run {run}: {len(run_df)} trials | button map {run_df['but_map'].iloc[0]} | "
              f"onsets {run_df['ideal_stim_onset'].min():g}-{run_df['ideal_stim_onset'].max():g} s")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="task-utils")
    sub = ap.add_subparsers(dest="command", required=True)

    mk = sub.add_parser("make-trial-list", help="Build (or show) a participant's trial list")
    mk.add_argument("params", type=str, help="Parameter file")
    mk.add_argument("--sub", type=str, required=True, help="Subject number")
    mk.add_argument("--pc", action="store_true", help="Use the computer key settings instead of the scanner ones")
    mk.add_argument("--out", type=str, default=None, help="Output TSV (default: <out-dir>/sub-XXX/sub-XXX_trial_list.tsv)")
    mk.add_argument("--out-dir", type=str, default="trial_lists")
    mk.add_argument("--seed", type=int, default=None, help="Overrides random_seed from the parameter file")
    mk.add_argument("--force", action="store_true", help="Regenerate even if a trial list exists")
    mk.set_defaults(func=make_trial_list_cmd)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (TaskError, FileNotFoundError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
