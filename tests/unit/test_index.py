# Unit tests for utils/index.py

import pytest
import hashlib
import os
import struct
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'nit-project'))

from conftest import write_file
from utils import objects, index as index_utils
from utils.index import IndexEntry, Index
from utils.errors import CorruptIndex, NotStaged, StorageError, InvalidArgument


def _entry(path, sha='ab' * 20, **overrides):
    fields = dict(
        ctime_ns=1700000000123456789, mtime_ns=1700000001987654321,
        dev=2049, ino=123456, mode=index_utils.MODE_FILE, uid=1000, gid=1000,
        size=5, sha=sha, flags=index_utils.name_flags(path), path=path,
    )
    fields.update(overrides)
    return IndexEntry(**fields)


class TestReadIndex:
    """Tests for index_utils.read_index()"""

    def test_read_missing_index(self, temp_repo):
        """Should return an empty index when no index file exists."""
        index = index_utils.read_index(temp_repo)
        assert len(index) == 0
        assert index.entries == []

    def test_round_trip(self, temp_repo):
        entries = [_entry('b.txt'), _entry('a/c.txt', sha='cd' * 20, mode=index_utils.MODE_EXEC)]
        Index(temp_repo, entries).save()

        loaded = index_utils.read_index(temp_repo)
        assert set(loaded.entries) == set(entries)

    def test_round_trip_empty(self, temp_repo):
        Index(temp_repo).save()
        assert index_utils.read_index(temp_repo).entries == []

    def test_read_index_hashes(self, temp_repo):
        Index(temp_repo, [_entry('test.txt', sha='12' * 20)]).save()
        assert index_utils.read_index_hashes(temp_repo) == {'test.txt': '12' * 20}


class TestSerializeIndex:
    """Tests for the binary layout written by index_utils.serialize_index()"""

    def test_header(self):
        data = index_utils.serialize_index([_entry('a'), _entry('b')])
        assert data[:4] == b'DIRC'
        assert struct.unpack('>LL', data[4:12]) == (2, 2)

    def test_entry_layout(self):
        entry = _entry('hello.txt')
        data = index_utils.serialize_index([entry])
        body = data[12:]

        ctime_s, ctime_n, mtime_s, mtime_n = struct.unpack('>LLLL', body[:16])
        assert (ctime_s, ctime_n) == (1700000000, 123456789)
        assert (mtime_s, mtime_n) == (1700000001, 987654321)
        assert struct.unpack('>LLLLLL', body[16:40]) == (2049, 123456, 0o100644, 1000, 1000, 5)
        assert body[40:60] == bytes.fromhex('ab' * 20)
        assert struct.unpack('>H', body[60:62]) == (len('hello.txt'),)
        assert body[62:72] == b'hello.txt\x00'

    def test_padded_to_eight_bytes(self):
        for name in ('a', 'ab', 'abcdefgh', 'x' * 17):
            assert len(index_utils.serialize_index([_entry(name)])) % 8 == 0

    def test_sorted_regardless_of_input_order(self):
        a, b, c = _entry('a'), _entry('b/x'), _entry('c')
        assert index_utils.serialize_index([c, a, b]) == index_utils.serialize_index([a, b, c])

    def test_flags_keep_high_bits_and_cap_length(self):
        long_path = 'd/' * 3000 + 'f'
        entry = _entry(long_path, flags=0x8000)
        data = index_utils.serialize_index([entry])
        (flags,) = struct.unpack('>H', data[12 + 60:12 + 62])
        assert flags == 0x8000 | 0x0FFF


class TestParseIndex:
    """Tests for the corruption checks in index_utils.parse_index()"""

    def test_bad_magic(self):
        data = b'NOPE' + index_utils.serialize_index([])[4:]
        with pytest.raises(CorruptIndex):
            index_utils.parse_index(data)

    def test_unsupported_version(self):
        data = b'DIRC' + struct.pack('>LL', 3, 0)
        with pytest.raises(CorruptIndex):
            index_utils.parse_index(data)

    def test_short_header(self):
        with pytest.raises(CorruptIndex):
            index_utils.parse_index(b'DIRC\x00\x00')

    def test_truncated_mid_entry(self):
        data = index_utils.serialize_index([_entry('a.txt'), _entry('b.txt')])
        with pytest.raises(CorruptIndex):
            index_utils.parse_index(data[:-20])

    def test_count_larger_than_entries(self):
        data = bytearray(index_utils.serialize_index([_entry('a.txt')]))
        data[8:12] = struct.pack('>L', 2)
        with pytest.raises(CorruptIndex):
            index_utils.parse_index(bytes(data))

    def test_missing_path_terminator(self):
        data = index_utils.serialize_index([])[:8] + struct.pack('>L', 1)
        data += struct.pack('>LLLLLLLLLL20sH', 0, 0, 0, 0, 0, 0, 0o100644, 0, 0, 0, b'\x00' * 20, 3) + b'abc'
        with pytest.raises(CorruptIndex):
            index_utils.parse_index(data)

    def test_duplicate_paths(self):
        data = index_utils.serialize_index([_entry('a.txt'), _entry('b.txt')])
        data = data.replace(b'b.txt\x00', b'a.txt\x00')
        with pytest.raises(CorruptIndex, match='twice'):
            index_utils.parse_index(data)

    def test_corrupt_file_on_disk(self, temp_repo):
        with open(os.path.join(temp_repo, '.nit', 'index'), 'wb') as f:
            f.write(b'garbage garbage')
        with pytest.raises(CorruptIndex):
            index_utils.read_index(temp_repo)


class TestAddFile:
    """Tests for Index.add_file()"""

    def test_stages_blob_and_metadata(self, temp_repo):
        path = write_file(temp_repo, 'a.txt', 'hello')
        index = index_utils.read_index(temp_repo)
        entry = index.add_file('a.txt')

        st = os.stat(path)
        assert entry.sha == hashlib.sha1(b'blob 5\x00hello').hexdigest()
        assert entry.size == 5
        assert entry.mtime_ns == st.st_mtime_ns
        assert entry.mode == index_utils.MODE_FILE
        assert entry.flags & 0x0FFF == len('a.txt')
        assert objects.read_blob(temp_repo, entry.sha) == b'hello'

    def test_persists_immediately(self, temp_repo):
        write_file(temp_repo, 'a.txt', 'hello')
        index_utils.read_index(temp_repo).add_file('a.txt')
        assert index_utils.read_index(temp_repo).paths() == ['a.txt']

    def test_executable_bit(self, temp_repo):
        write_file(temp_repo, 'run.sh', '#!/bin/sh\n', mode=0o755)
        entry = index_utils.read_index(temp_repo).add_file('run.sh')
        assert entry.mode == index_utils.MODE_EXEC

    def test_update_existing_entry(self, temp_repo):
        write_file(temp_repo, 'a.txt', 'one')
        index = index_utils.read_index(temp_repo)
        first = index.add_file('a.txt')
        write_file(temp_repo, 'a.txt', 'two!')
        second = index.add_file('a.txt')

        assert len(index) == 1
        assert second.sha != first.sha
        assert second.size == 4
        assert index_utils.read_index(temp_repo).get('a.txt') == second

    def test_absolute_path_and_nested_dirs(self, temp_repo):
        full = write_file(temp_repo, 'src/pkg/mod.py', 'x = 1\n')
        entry = index_utils.read_index(temp_repo).add_file(full)
        assert entry.path == 'src/pkg/mod.py'

    def test_missing_file(self, temp_repo):
        with pytest.raises(StorageError):
            index_utils.read_index(temp_repo).add_file('nope.txt')

    def test_directory(self, temp_repo):
        os.makedirs(os.path.join(temp_repo, 'somedir'))
        with pytest.raises(StorageError):
            index_utils.read_index(temp_repo).add_file('somedir')

    @pytest.mark.parametrize('path', ['../outside.txt', '.nit/HEAD', '.'])
    def test_paths_outside_worktree_rejected(self, temp_repo, path):
        with pytest.raises(InvalidArgument):
            index_utils.read_index(temp_repo).add_file(path)


class TestRemoveFile:
    """Tests for Index.remove_file()"""

    def test_remove_staged(self, temp_repo):
        write_file(temp_repo, 'a.txt', 'a')
        write_file(temp_repo, 'b.txt', 'b')
        index = index_utils.read_index(temp_repo)
        index.add_file('a.txt')
        index.add_file('b.txt')

        index.remove_file('a.txt')

        assert len(index) == 1
        assert index_utils.read_index(temp_repo).paths() == ['b.txt']
        # the working file is untouched
        assert os.path.exists(os.path.join(temp_repo, 'a.txt'))

    def test_remove_unstaged(self, temp_repo):
        index = index_utils.read_index(temp_repo)
        with pytest.raises(NotStaged):
            index.remove_file('ghost.txt')


class TestIsModified:
    """Tests for Index.is_modified()"""

    def test_clean_after_staging(self, repo_with_file):
        index = index_utils.read_index(repo_with_file)
        index.add_file('test.txt')
        assert index.is_modified('test.txt') is False

    def test_modified_after_edit(self, repo_with_file):
        index = index_utils.read_index(repo_with_file)
        index.add_file('test.txt')
        write_file(repo_with_file, 'test.txt', 'changed')
        assert index.is_modified('test.txt') is True

    def test_touch_without_content_change_is_clean(self, repo_with_file):
        index = index_utils.read_index(repo_with_file)
        index.add_file('test.txt')
        os.utime(os.path.join(repo_with_file, 'test.txt'), (0, 0))
        assert index.is_modified('test.txt') is False

    def test_untracked_counts_as_modified(self, repo_with_file):
        assert index_utils.read_index(repo_with_file).is_modified('test.txt') is True

    def test_deleted_counts_as_modified(self, repo_with_file):
        index = index_utils.read_index(repo_with_file)
        index.add_file('test.txt')
        os.remove(os.path.join(repo_with_file, 'test.txt'))
        assert index.is_modified('test.txt') is True

    def test_does_not_write_objects(self, repo_with_file):
        index = index_utils.read_index(repo_with_file)
        index.add_file('test.txt')
        write_file(repo_with_file, 'test.txt', 'changed')
        index.is_modified('test.txt')
        sha = objects.hash_object(repo_with_file, b'changed', 'blob', write=False)
        assert not objects.object_exists(repo_with_file, sha)
