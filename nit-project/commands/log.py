# The command: nit log
# What it does: Displays the commit history by starting at the current HEAD and walking backward through the parent links
# How it does: Reads the commit HEAD points to, prints it, then follows its single `parent` field until a commit without one (the first commit) is reached
# What data structure it uses: Linked List traversal (each commit has at most one parent, so history is a chain)

import time
from utils import repository, objects
from utils.errors import NitError


def run(args):
    repo_root = repository.require_repo_root()

    commit_hash = repository.get_head_commit(repo_root)
    if not commit_hash: # Check if there are any commits
        current_branch = repository.get_current_branch(repo_root) or repository.DEFAULT_BRANCH
        raise NitError(f"your current branch '{current_branch}' does not have any commits yet")

    for current_hash, commit in iter_history(repo_root, commit_hash):
        print(f"commit {current_hash}")
        print(f"Author: {_identity_name(commit.author)}")
        print(f"Date:   {_identity_date(commit.author)}")
        print()
        for line in commit.message.splitlines():
            print(f"    {line}")
        print()


def iter_history(repo_root, commit_hash): # Yields (hash, Commit) from `commit_hash` back to the first commit
    visited = set()
    while commit_hash:
        if commit_hash in visited:
            raise NitError(f"commit history loops back to {commit_hash}")
        visited.add(commit_hash)
        commit = objects.read_commit(repo_root, commit_hash)
        yield commit_hash, commit
        commit_hash = commit.parent


def _identity_name(identity): # "Name <email> 1700000000 +0000" -> "Name <email>"
    parts = identity.rsplit(' ', 2)
    return parts[0] if len(parts) == 3 else identity


def _identity_date(identity):
    parts = identity.rsplit(' ', 2)
    if len(parts) != 3 or not parts[1].isdigit():
        return ''
    return f"{time.strftime('%a %b %d %H:%M:%S %Y', time.gmtime(int(parts[1])))} {parts[2]}"
