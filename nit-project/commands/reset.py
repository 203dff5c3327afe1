# The command: nit reset <file>...
# What it does: Unstages files by removing them from the staging area (the index). It is the opposite of `nit add`
# How it does: Loads the index and removes each named path; the index is rewritten after every removal. A path that is not staged is an error
# What data structure it uses: Dictionary (the in-memory index)

import os
from utils import repository, index as index_utils


def run(args): #Executes the reset command to unstage files
    repo_root = repository.require_repo_root()
    index = index_utils.read_index(repo_root)

    for file_path in args.files:
        index.remove_file(os.path.abspath(file_path))

    print("Unstaged changes after reset:")
    for file_path in args.files:
        print(f" D {file_path}")
