import argparse
import logging
import sys
from commands import (
    init, add, reset, commit, status, log, branch, checkout, config
)
from utils.errors import NitError


# The main entry point for the Nit version control system
def main(argv=None):
    # The main parser
    parser = argparse.ArgumentParser(prog="nit", description="Nit: a small content-addressed version control system.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log what the object store and index are doing.")
    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    # Command: init
    init_parser = subparsers.add_parser("init", help="Initialize a new, empty repository.")
    init_parser.add_argument("path", nargs="?", help="Directory to initialize (default: current directory).")
    init_parser.set_defaults(func=init.run)

    # Command: add
    add_parser = subparsers.add_parser("add", help="Add file contents to the index.")
    add_parser.add_argument("files", nargs="+", help="Files or directories to add.")
    add_parser.set_defaults(func=add.run)

    # Command: reset
    reset_parser = subparsers.add_parser("reset", help="Unstage files.")
    reset_parser.add_argument("files", nargs="+", help="Files to remove from the index.")
    reset_parser.set_defaults(func=reset.run)

    # Command: commit
    commit_parser = subparsers.add_parser("commit", help="Record changes to the repository.")
    commit_parser.add_argument("-m", "--message", required=True, help="Commit message.")
    commit_parser.set_defaults(func=commit.run)

    # Command: status
    status_parser = subparsers.add_parser("status", help="Show the working tree status.")
    status_parser.set_defaults(func=status.run)

    # Command: log
    log_parser = subparsers.add_parser("log", help="Show commit logs.")
    log_parser.set_defaults(func=log.run)

    # Command: branch
    branch_parser = subparsers.add_parser("branch", help="List or create branches.")
    branch_parser.add_argument("name", nargs="?", help="The name of the branch to create.")
    branch_parser.set_defaults(func=branch.run)

    # Command: checkout
    checkout_parser = subparsers.add_parser("checkout", help="Switch branches or check out a commit.")
    checkout_parser.add_argument("target", help="Branch name or commit hash.")
    checkout_parser.add_argument("-f", "--force", action="store_true", help="Discard local changes to tracked files.")
    checkout_parser.set_defaults(func=checkout.run)

    # Command: config
    config_parser = subparsers.add_parser("config", help="Set user name and email.")
    config_parser.add_argument("key", help="The configuration key (e.g., user.name).")
    config_parser.add_argument("value", help="The configuration value.")
    config_parser.set_defaults(func=config.run)

    # Parse the arguments
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Core errors become a one-line diagnostic and a non-zero exit status
    try:
        args.func(args)
    except (NitError, OSError) as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
