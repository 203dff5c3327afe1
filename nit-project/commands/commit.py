# The command: nit commit -m "<message>"
# What it does: Creates a permanent, uniquely identified snapshot (a commit object) of the currently staged changes.
# How it does: It folds the flat index into a hierarchical Merkle Tree to get a single root hash for the project's state. It then finds the parent commit, gathers metadata (author, message), and hashes them all into a new "commit" object. Finally, it moves the current branch (or a detached HEAD) to the new commit.
# What data structure it uses: Merkle Tree (the project's file structure), Linked List (each commit links to its single parent), Hash Table / Dictionary (the underlying object store)

import time
from utils import repository, objects, config, index as index_utils
from utils.errors import InvalidArgument, NitError
from utils.tree_builder import build_tree

IDENTITY_FORBIDDEN = ("\n", "\r", "\0", "<", ">")


def run(args):
    repo_root = repository.require_repo_root()
    commit_hash, branch = create_commit(repo_root, args.message)
    print(f"[{branch or 'detached HEAD'} {commit_hash[:7]}] {args.message.splitlines()[0]}")


def tz_offset(timestamp): # Local UTC offset at `timestamp`, formatted like +0130
    offset = time.localtime(timestamp).tm_gmtoff
    sign = '+' if offset >= 0 else '-'
    offset = abs(offset)
    return f"{sign}{offset // 3600:02d}{offset % 3600 // 60:02d}"


def create_commit(repo_root, message, timestamp=None): # Creates a commit object and advances HEAD; returns (hash, branch)
    if not message or not message.strip():
        raise InvalidArgument("aborting commit due to empty commit message")

    index = index_utils.read_index(repo_root)
    if not len(index):
        raise NitError("nothing to commit (empty index)")

    user_name, user_email = config.get_user_config(repo_root)
    if not user_name or not user_email:
        raise NitError("author identity unknown; run 'nit config user.name <name>' and 'nit config user.email <email>'")
    for value in (user_name, user_email):
        if any(c in value for c in IDENTITY_FORBIDDEN):
            raise InvalidArgument(f"invalid author identity {value!r}: name and email may not contain newlines or angle brackets")

    tree_hash = build_tree(repo_root, index)
    parent = repository.get_head_commit(repo_root)

    if timestamp is None:
        timestamp = int(time.time())
    author = objects.format_identity(user_name, user_email, timestamp, tz_offset(timestamp))

    commit_hash = objects.write_commit(repo_root, tree_hash, parent, author, author, message)
    branch = repository.advance_head(repo_root, commit_hash)
    return commit_hash, branch
