# Shared pytest fixtures for Nit VCS tests

import pytest
import os
import sys
import shutil
import tempfile

# Add nit-project to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'nit-project'))

from utils import repository, index as index_utils
from commands import commit


@pytest.fixture
def temp_dir():
    # Creates a temporary directory that is cleaned up after the test
    # Also saves/restores cwd to prevent issues when tests change directories
    original_dir = os.getcwd()
    tmp = os.path.realpath(tempfile.mkdtemp())
    yield tmp
    os.chdir(original_dir)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_repo(temp_dir, monkeypatch):
    # Creates an initialized Nit repository in a temporary directory
    monkeypatch.chdir(temp_dir)
    monkeypatch.delenv('NIT_AUTHOR_NAME', raising=False)
    monkeypatch.delenv('NIT_AUTHOR_EMAIL', raising=False)

    repository.init_repository(temp_dir)

    # Set up config
    config_path = os.path.join(temp_dir, '.nit', 'config')
    with open(config_path, 'w') as f:
        f.write('[user]\n')
        f.write('name = Test User\n')
        f.write('email = test@example.com\n')

    return temp_dir


def write_file(repo_root, rel_path, content, mode=None):
    # Writes a working-tree file, creating parent directories
    full_path = os.path.join(repo_root, *rel_path.split('/'))
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    if isinstance(content, str):
        content = content.encode()
    with open(full_path, 'wb') as f:
        f.write(content)
    if mode is not None:
        os.chmod(full_path, mode)
    return full_path


def read_file(repo_root, rel_path):
    with open(os.path.join(repo_root, *rel_path.split('/')), 'rb') as f:
        return f.read()


@pytest.fixture
def repo_with_file(temp_repo):
    # Creates a repo with a single file (not staged)
    write_file(temp_repo, 'test.txt', 'Hello, World!')
    return temp_repo


@pytest.fixture
def repo_with_commit(temp_repo):
    # Creates a repo with one committed file
    write_file(temp_repo, 'README.md', '# Test Project\n')
    index = index_utils.read_index(temp_repo)
    index.add_file('README.md')

    commit_hash, _ = commit.create_commit(temp_repo, 'Initial commit', timestamp=1700000000)
    return temp_repo, commit_hash


@pytest.fixture
def repo_with_branches(repo_with_commit):
    # Creates a repo with master and a feature branch
    repo_root, initial_commit = repo_with_commit
    repository.create_branch(repo_root, 'feature', initial_commit)
    return repo_root, initial_commit


# Mock args object for command functions
class MockArgs:
    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, value)
