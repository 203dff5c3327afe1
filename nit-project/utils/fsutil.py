# What it does: Writes files so that a reader never observes a half-written file, and groups many working-tree changes into one publish step
# How it does: atomic_write puts the data in a temporary file in the destination's own directory (same filesystem) and moves it over the destination with os.replace.
# WorkTreeTransaction stages file contents in a staging directory and queues removals and directories; nothing in the working tree changes until commit
# What data structure it uses: List (pending temp -> destination moves, queued directories, queued removals)

import contextlib
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

TEMP_PREFIX = '.nit-tmp-'


def _write_temp(directory, data, mode):
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=TEMP_PREFIX)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.chmod(tmp_path, mode)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_path)
        raise
    return tmp_path


def atomic_write(path, data, mode=0o644):
    """Replace `path` with `data` in one rename, creating parent directories."""
    directory = os.path.dirname(path) or '.'
    os.makedirs(directory, exist_ok=True)
    tmp_path = _write_temp(directory, data, mode)
    try:
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_path)
        raise


class WorkTreeTransaction:
    """
    Stages working-tree changes and publishes them together.

        with WorkTreeTransaction(staging_dir, root=repo_root) as txn:
            txn.remove_file('old/gone.txt')
            txn.write_file('a/b.txt', b'data')
            txn.make_dir('a/c')

    File contents are written to temp files under `staging_dir` straight away;
    nothing under `root` changes until the block is left normally. Commit then
    deletes the files queued for removal (pruning directories they leave empty,
    never `root` itself), creates the queued directories and moves every staged
    file into place. Leaving the block with an exception deletes the staged
    files and re-raises.

    `staging_dir` must be on the same filesystem as the destinations.
    """

    def __init__(self, staging_dir, root=None):
        self.staging_dir = staging_dir
        self.root = os.path.abspath(root) if root else None
        self._pending = []
        self._dirs = []
        self._removals = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

    def make_dir(self, path):
        self._dirs.append(path)

    def write_file(self, path, data, mode=0o644):
        os.makedirs(self.staging_dir, exist_ok=True)
        tmp_path = _write_temp(self.staging_dir, data, mode)
        self._pending.append((tmp_path, path))

    def remove_file(self, path):
        self._removals.append(path)

    def _remove_and_prune(self, path):
        with contextlib.suppress(FileNotFoundError):
            os.remove(path)
        parent = os.path.dirname(os.path.abspath(path))
        while parent != self.root and os.path.isdir(parent) and not os.listdir(parent):
            os.rmdir(parent)
            parent = os.path.dirname(parent)

    def commit(self):
        pending, self._pending = self._pending, []
        removals, self._removals = self._removals, []
        dirs, self._dirs = self._dirs, []
        moved = 0
        try:
            for path in removals:
                self._remove_and_prune(path)
            for directory in dirs:
                os.makedirs(directory, exist_ok=True)
            for tmp_path, path in pending:
                os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
                os.replace(tmp_path, path)
                moved += 1
        except BaseException:
            for tmp_path, _ in pending[moved:]:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_path)
            logger.debug("Publish failed after %d of %d staged file(s)", moved, len(pending))
            raise
        logger.debug("Removed %d file(s), published %d staged file(s)", len(removals), len(pending))

    def rollback(self):
        pending, self._pending = self._pending, []
        for tmp_path, _ in pending:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
        self._dirs = []
        self._removals = []
        logger.debug("Discarded %d staged file(s)", len(pending))
