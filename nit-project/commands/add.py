# The command: nit add <file>...
# What it does: Takes a snapshot of files from the working directory and stages them for the next commit by updating the index
# How it does: It loads the binary index, then for every file (directories are expanded with a walk that honours .nitignore) it writes a blob object
# and records the blob hash plus the file's stat data. The index is persisted after each file, so every file that was reported as added stays added even if a later one fails
# What data structure it uses: Hash Table / Dictionary (the index in memory), List (the files to add), Tree Traversal (when expanding a directory with os.walk)

import os
from utils import repository, ignore, index as index_utils
from utils.errors import NitError


def run(args):
    repo_root = repository.require_repo_root()
    index = index_utils.read_index(repo_root)

    for rel_path in _expand_files(args.files, repo_root):
        index.add_file(rel_path)
        print(f"Added '{rel_path}' to the index.")


def _expand_files(file_args, repo_root):
    """
    Expands file arguments (relative to the current directory) into
    repo-relative file paths. Directories, including '.', expand to every
    non-ignored file below them.
    """
    ignore_patterns = ignore.get_ignored_patterns(repo_root)
    expanded_files = []

    for arg in file_args:
        full_path = os.path.abspath(arg)
        rel_path = os.path.relpath(full_path, repo_root).replace(os.sep, '/')

        if os.path.isdir(full_path):
            prefix = '' if rel_path == '.' else rel_path + '/'
            for path in ignore.walk_files(repo_root, ignore_patterns):
                if path.startswith(prefix):
                    expanded_files.append(path)
        elif os.path.lexists(full_path):
            if not ignore.is_ignored(rel_path, ignore_patterns):
                expanded_files.append(rel_path)
        else:
            raise NitError(f"pathspec '{arg}' did not match any files")

    # Keep first occurrence when the same file is named twice
    return list(dict.fromkeys(expanded_files))
