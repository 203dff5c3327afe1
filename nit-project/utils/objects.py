# What it does: Manages the low-level object database, handling the storage and retrieval of all blobs, trees, and commits
# How it does: It implements a content-addressed storage system. `hash_object` saves content and returns its hash, `read_object` retrieves content using its hash.
# Objects are write-once: an id is derived from the bytes, so an existing file at that path already holds the right bytes and is never rewritten.
# It also holds the payload codecs for trees (binary entries, sorted byte-wise) and commits (text headers + message)
# What data structure it uses: Hash Table / Dictionary (the object store is a content-addressed dictionary where the SHA-1 hash is the key, sharded on disk by its first two hex characters)

import enum
import hashlib
import logging
import os
import re
import zlib
from collections import namedtuple

from .errors import (
    InvalidArgument, InvalidObjectId, MalformedObject, NotABlob, NotACommit,
    NotATree, ObjectNotFound, StorageError,
)
from .fsutil import atomic_write
from .repository import repo_path

logger = logging.getLogger(__name__)

MODE_FILE = '100644'
MODE_EXEC = '100755'
MODE_SYMLINK = '120000'
MODE_DIR = '40000'

TREE_MODES = (MODE_FILE, MODE_EXEC, MODE_SYMLINK, MODE_DIR)

_SHA1_RE = re.compile(r'^[0-9a-f]{40}$')


class ObjectKind(enum.Enum):
    BLOB = 'blob'
    TREE = 'tree'
    COMMIT = 'commit'

    def __str__(self):
        return self.value


StoredObject = namedtuple('StoredObject', ['kind', 'payload'])
TreeEntry = namedtuple('TreeEntry', ['mode', 'name', 'target'])
Commit = namedtuple('Commit', ['tree', 'parent', 'author', 'committer', 'message'])


def validate_sha1(sha1): # Raises InvalidObjectId unless sha1 is 40 lowercase hex characters
    if not isinstance(sha1, str) or not _SHA1_RE.match(sha1):
        raise InvalidObjectId(sha1)
    return sha1


def _kind(obj_type):
    try:
        return ObjectKind(obj_type)
    except ValueError:
        raise InvalidArgument(f"unknown object type: {obj_type!r}") from None


def object_path(repo_root, sha1):
    return repo_path(repo_root, 'objects', sha1[:2], sha1[2:])


def object_exists(repo_root, sha1):
    return os.path.isfile(object_path(repo_root, validate_sha1(sha1)))


def hash_object(repo_root, content, obj_type, write=True): #Hashes content and optionally writes it as an object of the given kind
    kind = _kind(obj_type)
    data = f'{kind.value} {len(content)}\0'.encode() + content
    sha1 = hashlib.sha1(data).hexdigest()

    if write:
        path = object_path(repo_root, sha1)
        if os.path.exists(path):
            logger.debug("Object %s already stored", sha1)
            return sha1
        try:
            atomic_write(path, zlib.compress(data), mode=0o444)
        except OSError as e:
            raise StorageError(f"unable to write object {sha1}: {e}") from e
        logger.debug("Wrote %s %s (%d bytes)", kind.value, sha1, len(content))

    return sha1


def read_object(repo_root, sha1): #Reads an object by its SHA-1 hash and returns its kind and payload
    validate_sha1(sha1)
    path = object_path(repo_root, sha1)

    try:
        with open(path, 'rb') as f:
            compressed_data = f.read()
    except FileNotFoundError:
        raise ObjectNotFound(sha1) from None
    except OSError as e:
        raise StorageError(f"unable to read object {sha1}: {e}") from e

    try:
        data = zlib.decompress(compressed_data)
    except zlib.error as e:
        raise MalformedObject(f"object {sha1} is corrupt: {e}") from e

    null_byte_index = data.find(b'\0')
    if null_byte_index == -1:
        raise MalformedObject(f"object {sha1} has no header terminator")
    header = data[:null_byte_index]
    payload = data[null_byte_index + 1:]

    try:
        type_name, size = header.decode('ascii').split(' ')
        kind = ObjectKind(type_name)
        size = int(size)
    except ValueError:
        raise MalformedObject(f"object {sha1} has a bad header: {header!r}") from None

    if size != len(payload):
        raise MalformedObject(f"object {sha1} is truncated: header says {size} bytes, found {len(payload)}")

    return StoredObject(kind, payload)


def read_blob(repo_root, sha1):
    obj = read_object(repo_root, sha1)
    if obj.kind is not ObjectKind.BLOB:
        raise NotABlob(sha1, obj.kind.value)
    return obj.payload


def read_tree(repo_root, sha1):
    obj = read_object(repo_root, sha1)
    if obj.kind is not ObjectKind.TREE:
        raise NotATree(sha1, obj.kind.value)
    return parse_tree(obj.payload)


def read_commit(repo_root, sha1):
    obj = read_object(repo_root, sha1)
    if obj.kind is not ObjectKind.COMMIT:
        raise NotACommit(sha1, obj.kind.value)
    return parse_commit(obj.payload)


# Trees

def encode_tree_entry(mode, name, target):
    """Canonical entry encoding: ``<mode> <name>\\0`` followed by the 20 raw digest bytes."""
    if mode not in TREE_MODES:
        raise InvalidArgument(f"unsupported tree entry mode: {mode!r}")
    if not name or '/' in name or '\0' in name or name in ('.', '..'):
        raise InvalidArgument(f"invalid tree entry name: {name!r}")
    validate_sha1(target)
    return f'{mode} {name}'.encode() + b'\0' + bytes.fromhex(target)


def serialize_tree(entries):
    # Sorted by the encoded bytes, not the bare name, so "a-b" < "a/" style
    # collisions order the same way every time.
    encoded = sorted(encode_tree_entry(*entry) for entry in entries)
    return b''.join(encoded)


def parse_tree(payload):
    entries = []
    pos = 0
    while pos < len(payload):
        null_pos = payload.find(b'\0', pos)
        if null_pos == -1 or null_pos + 21 > len(payload):
            raise MalformedObject("truncated tree entry")
        space_pos = payload.find(b' ', pos, null_pos)
        if space_pos == -1:
            raise MalformedObject("tree entry is missing its mode")
        try:
            mode = payload[pos:space_pos].decode('ascii')
            name = payload[space_pos + 1:null_pos].decode('utf-8')
        except UnicodeDecodeError:
            raise MalformedObject("tree entry is not valid text") from None
        if mode not in TREE_MODES or not name:
            raise MalformedObject(f"bad tree entry: {mode!r} {name!r}")
        target = payload[null_pos + 1:null_pos + 21].hex()
        entries.append(TreeEntry(mode, name, target))
        pos = null_pos + 21
    return entries


def write_tree(repo_root, entries): # Writes a tree object from (mode, name, target) entries and returns its hash
    return hash_object(repo_root, serialize_tree(entries), ObjectKind.TREE)


# Commits

def format_identity(name, email, timestamp, tz_offset):
    return f"{name} <{email}> {int(timestamp)} {tz_offset}"


def serialize_commit(tree, parent, author, committer, message):
    lines = [f'tree {validate_sha1(tree)}']
    if parent:
        lines.append(f'parent {validate_sha1(parent)}')
    lines.append(f'author {author}')
    lines.append(f'committer {committer}')
    lines.append('')
    lines.append(message)
    return '\n'.join(lines).encode()


def parse_commit(payload):
    try:
        text = payload.decode('utf-8')
    except UnicodeDecodeError:
        raise MalformedObject("commit is not valid UTF-8") from None

    headers, sep, message = text.partition('\n\n')
    if not sep:
        raise MalformedObject("commit has no message separator")

    fields = {}
    for line in headers.split('\n'):
        key, _, value = line.partition(' ')
        if key not in ('tree', 'parent', 'author', 'committer') or key in fields:
            raise MalformedObject(f"unexpected commit header line: {line!r}")
        fields[key] = value

    if 'tree' not in fields:
        raise MalformedObject("commit has no tree")
    try:
        validate_sha1(fields['tree'])
        if 'parent' in fields:
            validate_sha1(fields['parent'])
    except InvalidObjectId as e:
        raise MalformedObject(f"commit references a bad id: {e}") from None

    return Commit(
        tree=fields['tree'],
        parent=fields.get('parent'),
        author=fields.get('author', ''),
        committer=fields.get('committer', ''),
        message=message,
    )


def write_commit(repo_root, tree, parent, author, committer, message):
    if not message or not message.strip():
        raise InvalidArgument("aborting commit due to empty commit message")
    payload = serialize_commit(tree, parent, author, committer, message)
    return hash_object(repo_root, payload, ObjectKind.COMMIT)


def get_commit_files(repo_root, commit_hash): #Retrieves all files and their hashes from a commit by reading its tree recursively
    if not commit_hash:
        return {}
    return get_tree_files(repo_root, read_commit(repo_root, commit_hash).tree)


def get_tree_files(repo_root, tree_hash):
    files = {}

    def read_tree_recursive(tree_sha, path_prefix=""):
        for entry in read_tree(repo_root, tree_sha):
            current_path = f"{path_prefix}/{entry.name}" if path_prefix else entry.name
            if entry.mode == MODE_DIR:
                read_tree_recursive(entry.target, current_path)
            else:
                files[current_path] = entry.target

    read_tree_recursive(tree_hash)
    return files
