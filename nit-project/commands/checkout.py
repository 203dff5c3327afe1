# The command: nit checkout <branch-name> | <commit-hash>
# What it does: Switches the working directory, the index and HEAD to the snapshot a branch (or, detached, a commit) points to
# How it does: Reads the target commit's tree and materializes it onto disk, deleting in the same step the files the current commit tracks that the target tree does not contain
# (untracked files are left alone). Staged files that are new to the current commit and absent from the target stay staged. The index is rebuilt and finally HEAD is repointed.
# Unless --force is given, it refuses to run when local edits or staged changes would be overwritten or lost
# What data structure it uses: Tree traversal (materialize), Sets (current commit paths minus target paths), Dictionary (the rebuilt index)

import logging
import os
from utils import repository, objects, index as index_utils, materialize
from utils.errors import NitError, RefNotFound

logger = logging.getLogger(__name__)


def run(args):
    repo_root = repository.require_repo_root()
    target = args.target

    if repository.get_current_branch(repo_root) == target:
        print(f"Already on '{target}'")
        return

    if repository.get_branch_commit(repo_root, target):
        switch_to(repo_root, target, force=args.force)
        print(f"Switched to branch '{target}'")
    elif _is_commit(repo_root, target):
        switch_to(repo_root, target, force=args.force, detached=True)
        print(f"HEAD is now at {target[:7]}")
    else:
        raise RefNotFound(target)


def _is_commit(repo_root, name):
    try:
        objects.read_commit(repo_root, name)
    except (ValueError, NitError):
        return False
    return True


def switch_to(repo_root, target, force=False, detached=False):
    commit_hash = target if detached else repository.resolve_branch(repo_root, target)
    tree_hash = objects.read_commit(repo_root, commit_hash).tree
    target_files = objects.get_tree_files(repo_root, tree_hash)
    head_files = objects.get_commit_files(repo_root, repository.get_head_commit(repo_root))
    index = index_utils.read_index(repo_root)
    staged = index.hashes()

    # Staged files the current commit never had and the target does not touch ride along
    carried = [path for path in staged if path not in head_files and path not in target_files]

    if not force:
        dirty = [
            path for path in index.paths()
            if path not in carried
            and os.path.lexists(_full_path(repo_root, path)) and index.is_modified(path)
        ]
        if dirty:
            raise NitError(
                "your local changes to the following files would be overwritten by checkout: "
                + ", ".join(dirty)
            )
        lost = sorted(
            path for path in set(head_files) | set(staged)
            if path not in carried
            and staged.get(path) != head_files.get(path)
            and staged.get(path) != target_files.get(path)
        )
        if lost:
            raise NitError(
                "your staged changes to the following files would be lost by checkout: "
                + ", ".join(lost)
            )

    stale = sorted(set(head_files) - set(target_files))
    blocking = _untracked_in_the_way(repo_root, target_files, set(stale))
    if blocking:
        raise NitError(
            "the following working tree files would be overwritten by checkout: "
            + ", ".join(blocking)
        )

    written = materialize.materialize(repo_root, tree_hash, remove=stale)
    logger.debug("Removed %d tracked file(s) absent from %s", len(stale), tree_hash)

    entries = materialize.index_entries(repo_root, written)
    entries.extend(index.get(path) for path in carried)
    index.replace_entries(entries)

    if detached:
        repository.set_head_detached(repo_root, commit_hash)
    else:
        repository.set_head_to_branch(repo_root, target)
    return written


def _full_path(repo_root, rel_path):
    return os.path.join(repo_root, *rel_path.split('/'))


def _untracked_in_the_way(repo_root, target_files, stale): # Paths the new layout needs that hold something checkout may not delete
    blocking = set()
    parents = set()
    for path in target_files:
        parts = path.split('/')
        parents.update('/'.join(parts[:i]) for i in range(1, len(parts)))

        full_path = _full_path(repo_root, path)
        if os.path.isdir(full_path) and not os.path.islink(full_path):
            for dirpath, dirnames, filenames in os.walk(full_path):
                if not dirnames and not filenames:
                    blocking.add(path)
                for name in filenames:
                    rel = os.path.relpath(os.path.join(dirpath, name), repo_root).replace(os.sep, '/')
                    if rel not in stale:
                        blocking.add(path)

    for parent in parents:
        full_path = _full_path(repo_root, parent)
        if os.path.lexists(full_path) and not os.path.isdir(full_path) and parent not in stale:
            blocking.add(parent)
    return sorted(blocking)
