# The command: nit status
# What it does: Provides a summary of the repository state by comparing the HEAD commit, the index (staging area), and the working directory
# How it does: HEAD's tree and the index are both flattened to {path: hash} and compared for staged changes. Each staged path is then checked with
# Index.is_modified for unstaged changes, and a walk of the working directory finds untracked files
# What data structure it uses: Hash Table / Dictionary (the states being compared), Sets (to find additions/deletions in O(N) time)

import os
from utils import repository, objects, ignore, index as index_utils


def run(args): # Compares the HEAD, index, and working directory states and prints the status
    repo_root = repository.require_repo_root()
    print(repository.get_head_status(repo_root))

    changes = collect_status(repo_root)

    _print_status("Changes to be committed", changes['staged'])
    _print_status("Changes not staged for commit", changes['unstaged'])

    if changes['untracked']:
        print("\nUntracked files:")
        print("  (use \"nit add <file>...\" to include in what will be committed)")
        for path in changes['untracked']:
            print(f"\t{path}")

    if not any(changes['staged'].values()) and not any(changes['unstaged'].values()) and not changes['untracked']:
        print("nothing to commit, working tree clean")


def collect_status(repo_root):
    head_commit = repository.get_head_commit(repo_root)
    head_files = objects.get_commit_files(repo_root, head_commit)

    index = index_utils.read_index(repo_root)
    index_files = index.hashes()

    unstaged = {'modified': [], 'deleted': []}
    for path in index.paths():
        if not os.path.lexists(os.path.join(repo_root, *path.split('/'))):
            unstaged['deleted'].append(path)
        elif index.is_modified(path):
            unstaged['modified'].append(path)

    untracked = [
        path for path in ignore.walk_files(repo_root)
        if path not in index_files
    ]

    return {
        'staged': _compare_dicts(head_files, index_files),
        'unstaged': unstaged,
        'untracked': sorted(untracked),
    }


def _compare_dicts(d1, d2): # Compares two {path: hash} dictionaries and returns a dict of changes
    changes = {'new file': [], 'modified': [], 'deleted': []}

    keys1, keys2 = set(d1.keys()), set(d2.keys())

    # New files (in d2 but not d1)
    for path in sorted(keys2 - keys1):
        changes['new file'].append(path)

    # Deleted files (in d1 but not d2)
    for path in sorted(keys1 - keys2):
        changes['deleted'].append(path)

    # Modified files (in both but with different hashes)
    for path in sorted(keys1 & keys2):
        if d1[path] != d2[path]:
            changes['modified'].append(path)

    return changes


def _print_status(header, changes):
    if not any(changes.values()):
        return

    print(f"\n{header}:")
    for change_type, paths in changes.items():
        for path in paths:
            print(f"\t{change_type}:   {path}")
