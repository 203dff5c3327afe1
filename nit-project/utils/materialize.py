# What it does: Expands a stored tree object back into files and directories on disk (the inverse of tree_builder.build_tree)
# How it does: Walks the tree depth-first. Directory entries are queued and recursed into; blob entries are read and staged through a WorkTreeTransaction,
# so the working directory only changes once every object in the tree has been read successfully. Only the files the caller asks to remove are deleted
# What data structure it uses: Tree (recursive traversal of the Merkle tree), List (the files written, handed back so the caller can rebuild the index)

import logging
import os
from collections import namedtuple

from . import objects
from .errors import MalformedObject, StorageError
from .fsutil import WorkTreeTransaction
from .index import make_entry
from .repository import NIT_DIR, repo_path

logger = logging.getLogger(__name__)

MaterializedFile = namedtuple('MaterializedFile', ['path', 'sha', 'mode'])

STAGING_DIR = 'tmp'


def _check_name(tree_id, name):
    if '/' in name or name in ('.', '..', NIT_DIR):
        raise MalformedObject(f"tree {tree_id} has an unsafe entry name: {name!r}")


def _full_path(repo_root, rel_path):
    return os.path.join(repo_root, *rel_path.split('/'))


def _expand(repo_root, txn, tree_id, prefix, written):
    for entry in objects.read_tree(repo_root, tree_id):
        _check_name(tree_id, entry.name)
        rel_path = f'{prefix}/{entry.name}' if prefix else entry.name
        full_path = _full_path(repo_root, rel_path)

        if entry.mode == objects.MODE_DIR:
            txn.make_dir(full_path)
            _expand(repo_root, txn, entry.target, rel_path, written)
        else:
            content = objects.read_blob(repo_root, entry.target)
            file_mode = 0o755 if entry.mode == objects.MODE_EXEC else 0o644
            txn.write_file(full_path, content, file_mode)
            written.append(MaterializedFile(rel_path, entry.target, entry.mode))


def materialize(repo_root, tree_id, dest_prefix='', remove=()):
    """
    Writes the contents of tree `tree_id` under `dest_prefix` (relative to
    the repository root; '' is the root itself) and returns a list of
    MaterializedFile for every file written.

    `remove` lists repository-relative files to delete in the same step,
    before the new files are moved into place; directories they leave empty
    are pruned. A path that is a file on one side and a directory on the
    other is only writable once the old occupant is gone.

    Raises NotATree / NotABlob when an id points at the wrong kind of object
    and ObjectNotFound for a missing one; in those cases nothing is written
    or removed.
    """
    objects.validate_sha1(tree_id)
    prefix = dest_prefix.replace(os.sep, '/').strip('/')
    written = []
    try:
        with WorkTreeTransaction(repo_path(repo_root, STAGING_DIR), root=repo_root) as txn:
            for rel_path in remove:
                txn.remove_file(_full_path(repo_root, rel_path))
            if prefix:
                txn.make_dir(_full_path(repo_root, prefix))
            _expand(repo_root, txn, tree_id, prefix, written)
    except OSError as e:
        raise StorageError(f"unable to check out tree {tree_id}: {e}") from e
    logger.debug("Materialized %d file(s) from %s, removed %d", len(written), tree_id, len(remove))
    return written


def index_entries(repo_root, written): # Builds fresh index entries for files that materialize() just wrote
    entries = []
    for item in written:
        try:
            st = os.lstat(_full_path(repo_root, item.path))
        except OSError as e:
            raise StorageError(f"unable to stat '{item.path}': {e}") from e
        entry = make_entry(item.path, st, item.sha)
        entries.append(entry._replace(mode=int(item.mode, 8)))
    return entries
