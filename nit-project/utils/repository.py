# What it does: Locates the repository and manages the ref files (HEAD and branch pointers) that name commits
# How it does: `find_repo_root` walks up the directory tree to locate the `.nit` directory. HEAD holds either `ref: refs/heads/<branch>` or a bare commit id (detached); every branch is a file in `refs/heads` holding a 40-hex id
# What data structure it uses: Recursion (linear) to find the repo root. Conceptually, the refs are pointers into the commit chain, a singly linked list walked backwards through `parent`

import logging
import os
import re

from .errors import InvalidArgument, NitError, RefNotFound
from .fsutil import atomic_write

logger = logging.getLogger(__name__)

NIT_DIR = '.nit'
DEFAULT_BRANCH = 'master'

_BRANCH_NAME_RE = re.compile(r'^[A-Za-z0-9._-]+$')


def repo_path(repo_root, *parts): # Joins path components under the repository's .nit directory
    return os.path.join(repo_root, NIT_DIR, *parts)


def find_repo_root(path='.'): # Recursively searches for the .nit directory to find the repository root
    path = os.path.abspath(path)
    if os.path.isdir(os.path.join(path, NIT_DIR)):
        return path
    parent_path = os.path.dirname(path)
    if parent_path == path:
        return None
    return find_repo_root(parent_path)


def require_repo_root(path='.'):
    repo_root = find_repo_root(path)
    if not repo_root:
        raise NitError("not a nit repository (or any of the parent directories): .nit")
    return repo_root


def init_repository(path): # Creates the .nit skeleton; returns False when one already exists
    nit_dir = os.path.join(os.path.abspath(path), NIT_DIR)
    if os.path.exists(nit_dir):
        return False
    os.makedirs(os.path.join(nit_dir, 'objects'))
    os.makedirs(os.path.join(nit_dir, 'refs', 'heads'))
    with open(os.path.join(nit_dir, 'HEAD'), 'w') as f:
        f.write(f'ref: refs/heads/{DEFAULT_BRANCH}\n')
    logger.debug("Initialized repository at %s", nit_dir)
    return True


def _read_head(repo_root):
    with open(repo_path(repo_root, 'HEAD'), 'r') as f:
        return f.read().strip()


def get_head_commit(repo_root): # Retrieves the commit hash that HEAD points to, or None if there are no commits
    if not os.path.exists(repo_path(repo_root, 'HEAD')):
        return None
    head_content = _read_head(repo_root)
    if head_content.startswith('ref: '):
        ref_path = head_content.split(' ', 1)[1]
        branch_path = repo_path(repo_root, *ref_path.split('/'))
        if not os.path.exists(branch_path) or os.path.getsize(branch_path) == 0:
            return None
        with open(branch_path, 'r') as f:
            return f.read().strip()
    return head_content or None


def get_current_branch(repo_root): # Name of the branch HEAD points to, or None when detached
    head_content = _read_head(repo_root)
    if head_content.startswith('ref: refs/heads/'):
        return head_content[len('ref: refs/heads/'):].strip()
    return None


def get_all_branches(repo_root): # Lists branch names that already point at a commit
    branches_dir = repo_path(repo_root, 'refs', 'heads')
    if not os.path.isdir(branches_dir):
        return []
    return sorted(
        name for name in os.listdir(branches_dir)
        if os.path.getsize(os.path.join(branches_dir, name)) > 0
    )


def get_branch_commit(repo_root, branch_name): # Commit a branch points to, or None if the branch doesn't exist
    branch_path = repo_path(repo_root, 'refs', 'heads', branch_name)
    if not os.path.exists(branch_path):
        return None
    with open(branch_path, 'r') as f:
        return f.read().strip() or None


def validate_branch_name(branch_name):
    if not _BRANCH_NAME_RE.match(branch_name) or branch_name.startswith('.'):
        raise InvalidArgument(f"'{branch_name}' is not a valid branch name")


def create_branch(repo_root, branch_name, commit_hash): # Creates a new branch pointing to the given commit hash
    validate_branch_name(branch_name)
    if not commit_hash:
        raise NitError("not a valid object name: 'HEAD'; commit something first")
    if get_branch_commit(repo_root, branch_name):
        raise NitError(f"a branch named '{branch_name}' already exists")
    update_branch(repo_root, branch_name, commit_hash)


def update_branch(repo_root, branch_name, commit_hash):
    atomic_write(repo_path(repo_root, 'refs', 'heads', branch_name), f"{commit_hash}\n".encode())
    logger.debug("refs/heads/%s -> %s", branch_name, commit_hash)


def resolve_branch(repo_root, branch_name):
    commit_hash = get_branch_commit(repo_root, branch_name)
    if not commit_hash:
        raise RefNotFound(branch_name)
    return commit_hash


def set_head_to_branch(repo_root, branch_name):
    atomic_write(repo_path(repo_root, 'HEAD'), f"ref: refs/heads/{branch_name}\n".encode())


def set_head_detached(repo_root, commit_hash):
    atomic_write(repo_path(repo_root, 'HEAD'), f"{commit_hash}\n".encode())


def advance_head(repo_root, commit_hash): # Moves the current branch (or a detached HEAD) to a new commit
    current_branch = get_current_branch(repo_root)
    if current_branch:
        update_branch(repo_root, current_branch, commit_hash)
    else:
        set_head_detached(repo_root, commit_hash)
    return current_branch


def get_head_status(repo_root): # Returns a user-friendly string describing HEAD state
    current_branch = get_current_branch(repo_root)
    if current_branch:
        return f"On branch {current_branch}"
    head_commit = get_head_commit(repo_root)
    if head_commit:
        return f"HEAD detached at {head_commit[:7]}"
    return "HEAD detached (no commits yet)"
