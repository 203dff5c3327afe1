# What it does: Provides the staging area (the .nit/index file): which paths go into the next commit, with their blob hash and filesystem metadata
# How it does: The file is a fixed binary layout, a 12-byte header (b"DIRC", version 2, entry count) followed by one record per path: ten big-endian
# uint32 fields (ctime, mtime, dev, ino, mode, uid, gid, size), the 20-byte raw digest, a uint16 flags word, the null-terminated path, and zero padding
# to an 8-byte boundary. Every mutation rewrites the whole file, sorted by path, through a temp file and a rename
# What data structure it uses: Dictionary (path -> IndexEntry, so a path can only be staged once), sorted List when serializing

import logging
import os
import stat
import struct
from collections import namedtuple

from . import objects
from .errors import CorruptIndex, InvalidArgument, NotStaged, StorageError
from .fsutil import atomic_write
from .repository import NIT_DIR, repo_path

logger = logging.getLogger(__name__)

INDEX_SIGNATURE = b'DIRC'
INDEX_VERSION = 2

MODE_FILE = 0o100644
MODE_EXEC = 0o100755
MODE_SYMLINK = 0o120000

FLAG_NAME_MASK = 0x0FFF
_UINT32 = 0xFFFFFFFF
_NS = 1000000000

_HEADER = struct.Struct('>4sLL')
# ctime s/ns, mtime s/ns, dev, ino, mode, uid, gid, size, sha, flags
_ENTRY = struct.Struct('>LLLLLLLLLL20sH')

IndexEntry = namedtuple('IndexEntry', [
    'ctime_ns', 'mtime_ns', 'dev', 'ino', 'mode', 'uid', 'gid', 'size', 'sha', 'flags', 'path',
])


def index_path(repo_root):
    return repo_path(repo_root, 'index')


def name_flags(path, flags=0): # Keeps the high 4 flag bits and stores the (capped) path length in the low 12
    return (flags & ~FLAG_NAME_MASK & 0xFFFF) | min(len(path.encode('utf-8')), FLAG_NAME_MASK)


def tree_mode(entry_mode): # 0o100755 -> '100755'
    return f'{entry_mode:o}'


def make_entry(path, st, sha, flags=0):
    if stat.S_ISLNK(st.st_mode):
        mode = MODE_SYMLINK
    elif st.st_mode & 0o111:
        mode = MODE_EXEC
    else:
        mode = MODE_FILE
    return IndexEntry(
        ctime_ns=st.st_ctime_ns,
        mtime_ns=st.st_mtime_ns,
        dev=st.st_dev & _UINT32,
        ino=st.st_ino & _UINT32,
        mode=mode,
        uid=st.st_uid & _UINT32,
        gid=st.st_gid & _UINT32,
        size=st.st_size & _UINT32,
        sha=sha,
        flags=name_flags(path, flags),
        path=path,
    )


def serialize_index(entries):
    entries = sorted(entries, key=lambda e: e.path)
    buf = bytearray(_HEADER.pack(INDEX_SIGNATURE, INDEX_VERSION, len(entries)))
    for e in entries:
        buf += _ENTRY.pack(
            (e.ctime_ns // _NS) & _UINT32, e.ctime_ns % _NS,
            (e.mtime_ns // _NS) & _UINT32, e.mtime_ns % _NS,
            e.dev, e.ino, e.mode, e.uid, e.gid, e.size,
            bytes.fromhex(e.sha),
            name_flags(e.path, e.flags),
        )
        buf += e.path.encode('utf-8') + b'\0'
        buf += b'\0' * (-len(buf) % 8)
    return bytes(buf)


def parse_index(data):
    if len(data) < _HEADER.size:
        raise CorruptIndex("index file is shorter than its header")
    signature, version, count = _HEADER.unpack_from(data, 0)
    if signature != INDEX_SIGNATURE:
        raise CorruptIndex(f"bad index signature: {signature!r}")
    if version != INDEX_VERSION:
        raise CorruptIndex(f"unsupported index version: {version}")

    entries = []
    seen = set()
    offset = _HEADER.size
    for i in range(count):
        if offset + _ENTRY.size > len(data):
            raise CorruptIndex(f"index truncated in entry {i}")
        (ctime_s, ctime_n, mtime_s, mtime_n, dev, ino, mode, uid, gid, size,
         raw_sha, flags) = _ENTRY.unpack_from(data, offset)

        path_start = offset + _ENTRY.size
        path_end = data.find(b'\0', path_start)
        if path_end == -1:
            raise CorruptIndex(f"index entry {i} has no path terminator")
        try:
            path = data[path_start:path_end].decode('utf-8')
        except UnicodeDecodeError:
            raise CorruptIndex(f"index entry {i} has an undecodable path") from None
        if path in seen:
            raise CorruptIndex(f"index lists '{path}' twice")
        seen.add(path)

        offset = path_end + 1
        offset += -offset % 8
        if offset > len(data):
            raise CorruptIndex(f"index truncated in entry {i}")

        entries.append(IndexEntry(
            ctime_ns=ctime_s * _NS + ctime_n,
            mtime_ns=mtime_s * _NS + mtime_n,
            dev=dev, ino=ino, mode=mode, uid=uid, gid=gid, size=size,
            sha=raw_sha.hex(), flags=flags, path=path,
        ))
    return entries


def read_index(repo_root):
    """
    Loads the index of `repo_root`. A repository that has never staged
    anything has no index file yet and gets an empty Index.
    """
    try:
        with open(index_path(repo_root), 'rb') as f:
            data = f.read()
    except FileNotFoundError:
        return Index(repo_root)
    except OSError as e:
        raise StorageError(f"unable to read index: {e}") from e
    return Index(repo_root, parse_index(data))


def read_index_hashes(repo_root):
    return read_index(repo_root).hashes()


class Index:
    def __init__(self, repo_root, entries=()):
        self.repo_root = repo_root
        self._entries = {}
        for entry in entries:
            self._entries[entry.path] = entry

    def __len__(self):
        return len(self._entries)

    def __contains__(self, path):
        return self.normalize(path) in self._entries

    def __iter__(self):
        return iter(self.entries)

    @property
    def entries(self):
        return [self._entries[path] for path in sorted(self._entries)]

    def paths(self):
        return sorted(self._entries)

    def get(self, path):
        return self._entries.get(self.normalize(path))

    def hashes(self):
        return {path: entry.sha for path, entry in self._entries.items()}

    def normalize(self, path):
        """Turns an absolute or repo-relative path into the '/'-separated key used in the index."""
        if os.path.isabs(path):
            path = os.path.relpath(path, self.repo_root)
        path = os.path.normpath(path).replace(os.sep, '/')
        if path in ('.', '') or path == '..' or path.startswith('../'):
            raise InvalidArgument(f"'{path}' is outside the repository")
        if path.split('/')[0] == NIT_DIR:
            raise InvalidArgument(f"'{path}' is inside the repository's {NIT_DIR} directory")
        return path

    def _full_path(self, rel_path):
        return os.path.join(self.repo_root, *rel_path.split('/'))

    def _read_working_file(self, rel_path):
        full_path = self._full_path(rel_path)
        st = os.lstat(full_path)
        if stat.S_ISDIR(st.st_mode):
            raise IsADirectoryError(f"'{rel_path}' is a directory")
        if stat.S_ISLNK(st.st_mode):
            return st, os.fsencode(os.readlink(full_path))
        with open(full_path, 'rb') as f:
            return st, f.read()

    def add_file(self, path): # Stages the working copy of `path` and persists the index
        rel_path = self.normalize(path)
        try:
            st, content = self._read_working_file(rel_path)
        except OSError as e:
            raise StorageError(f"unable to stage '{rel_path}': {e}") from e

        sha = objects.hash_object(self.repo_root, content, objects.ObjectKind.BLOB)
        previous = self._entries.get(rel_path)
        entry = make_entry(rel_path, st, sha, previous.flags if previous else 0)
        self._entries[rel_path] = entry
        logger.debug("Staged %s as %s", rel_path, sha)
        self.save()
        return entry

    def remove_file(self, path):
        rel_path = self.normalize(path)
        if rel_path not in self._entries:
            raise NotStaged(rel_path)
        del self._entries[rel_path]
        logger.debug("Unstaged %s", rel_path)
        self.save()

    def is_modified(self, path):
        """
        True when the working copy differs from what is staged. A path that
        is not staged at all, or whose working copy is gone, counts as modified.
        """
        rel_path = self.normalize(path)
        entry = self._entries.get(rel_path)
        if entry is None:
            return True
        try:
            _, content = self._read_working_file(rel_path)
        except FileNotFoundError:
            return True
        except OSError as e:
            raise StorageError(f"unable to read '{rel_path}': {e}") from e
        current = objects.hash_object(self.repo_root, content, objects.ObjectKind.BLOB, write=False)
        return current != entry.sha

    def replace_entries(self, entries): # Swaps in a whole new entry set (used after a checkout) and persists it
        self._entries = {}
        for entry in entries:
            self._entries[entry.path] = entry
        self.save()

    def save(self):
        data = serialize_index(self._entries.values())
        try:
            atomic_write(index_path(self.repo_root), data)
        except OSError as e:
            raise StorageError(f"unable to write index: {e}") from e
        logger.debug("Wrote index with %d entries", len(self._entries))
