# The command: nit init
# What it does: Initializes a new, empty repository by creating the hidden `.nit` directory and its internal structure
# How it does: It creates the `objects` and `refs/heads` subdirectories, then the `HEAD` file holding a symbolic reference to the default 'master' branch.
# The branch file itself only appears with the first commit
# What data structure it uses: Tree (the file system directory structure is a tree). It also lays the foundation for a Hash Table (the object database) and a linked list (the commit chain)

import os
from utils import repository


def run(args):
    repo_root = os.path.abspath(getattr(args, 'path', None) or os.getcwd())
    nit_dir = os.path.join(repo_root, repository.NIT_DIR)

    if repository.init_repository(repo_root):
        print(f"Initialized empty Nit repository in {nit_dir}/")
    else:
        print(f"Reinitialized existing Nit repository in {nit_dir}/")
