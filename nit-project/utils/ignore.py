# What it does: Implements the `.nitignore` functionality used when `add` and `status` walk the working directory
# What data structure it uses: Set (to store the ignore patterns for efficient, near O(1) average time complexity lookups)

import os
from fnmatch import fnmatch

from .fsutil import TEMP_PREFIX
from .repository import NIT_DIR

ALWAYS_IGNORED = {NIT_DIR, f'{NIT_DIR}/*', f'{TEMP_PREFIX}*', '*.pyc', '__pycache__'}


def get_ignored_patterns(repo_root):
    """
    Reads the .nitignore file and returns a set of glob patterns.
    """
    ignore_file = os.path.join(repo_root, '.nitignore')
    patterns = set(ALWAYS_IGNORED)

    if os.path.exists(ignore_file):
        with open(ignore_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    patterns.add(line)
    return patterns


def is_ignored(path, ignore_patterns): # Returns True if the '/'-separated path, or any component of it, matches a pattern
    for pattern in ignore_patterns:
        if fnmatch(path, pattern) or any(fnmatch(part, pattern) for part in path.split('/')):
            return True
    return False


def walk_files(repo_root, ignore_patterns=None): # Yields repo-relative '/'-separated paths of every non-ignored file
    if ignore_patterns is None:
        ignore_patterns = get_ignored_patterns(repo_root)
    for root, dirs, files in os.walk(repo_root):
        rel_root = os.path.relpath(root, repo_root).replace(os.sep, '/')
        rel_root = '' if rel_root == '.' else rel_root
        dirs[:] = sorted(
            d for d in dirs
            if not is_ignored(f'{rel_root}/{d}' if rel_root else d, ignore_patterns)
        )
        for name in sorted(files):
            rel_path = f'{rel_root}/{name}' if rel_root else name
            if not is_ignored(rel_path, ignore_patterns):
                yield rel_path
