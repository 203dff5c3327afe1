# The command: nit config <key> <value>
# What it does: A user-facing command to set a configuration key-value pair (e.g., user.name)
# How it does: It passes the key and value to `write_config` in `utils/config.py`, which handles the parsing and the file I/O

from utils import repository, config as config_utils


def run(args):
    repo_root = repository.require_repo_root()
    config_utils.write_config(repo_root, args.key, args.value)
    print(f"Set {args.key} to '{args.value}'")
