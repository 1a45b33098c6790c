# Parameter file for task_utils.load_parameters (executed as Python).

# -----------------------------
# Trial list
# -----------------------------
stim_list_file = "example/stim_list.tsv"
num_repetitions = 2
num_runs = 2
pre_post = 10             # fixation before the first / after the last trial (s)
stim_randomization = "run"  # "run", "all", or remove the line for no shuffling
random_seed = 1234

# -----------------------------
# Timing (s)
# -----------------------------
stim_dur = 1.5
fix_dur = 0.5

# -----------------------------
# Scanner (fmri_mode=True)
# -----------------------------
scr_dist_mri = 90
scr_width_mri = 40
resp_key_mri1 = 1
resp_key_mri2 = 2
trigger_key_mri = 5
resp_inst1 = "index finger"
resp_inst2 = "middle finger"

# -----------------------------
# Computer (fmri_mode=False)
# -----------------------------
scr_dist_pc = 60
scr_width_pc = 30
resp_key_pc1 = "f"
resp_key_pc2 = "j"
trigger_key_pc = "s"
escape_key = "escape"
