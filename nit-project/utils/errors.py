# What it does: Defines the typed failures raised by the object store, the index, the tree builder and the materializer
# How it does: A single root class (NitError) that the CLI catches, with one branch per failure kind so callers can react to "not found" differently from "corrupt"
# What data structure it uses: Class hierarchy


class NitError(Exception):
    """Base class for every error the core raises."""


# NotFound

class NotFoundError(NitError):
    pass


class ObjectNotFound(NotFoundError):
    def __init__(self, sha1):
        super().__init__(f"object not found: {sha1}")
        self.sha1 = sha1


class NotStaged(NotFoundError):
    def __init__(self, path):
        super().__init__(f"pathspec '{path}' is not in the index")
        self.path = path


class RefNotFound(NotFoundError):
    def __init__(self, name):
        super().__init__(f"no such branch: '{name}'")
        self.name = name


# Malformed

class MalformedError(NitError):
    pass


class MalformedObject(MalformedError):
    pass


class CorruptIndex(MalformedError):
    pass


# TypeMismatch

class TypeMismatch(NitError):
    expected = None

    def __init__(self, sha1, actual):
        super().__init__(f"object {sha1} is a {actual}, not a {self.expected}")
        self.sha1 = sha1
        self.actual = actual


class NotATree(TypeMismatch):
    expected = 'tree'


class NotABlob(TypeMismatch):
    expected = 'blob'


class NotACommit(TypeMismatch):
    expected = 'commit'


# IOFailure

class StorageError(NitError):
    pass


# Invalid arguments are also ValueErrors so plain `except ValueError` still works

class InvalidArgument(NitError, ValueError):
    pass


class InvalidObjectId(InvalidArgument):
    def __init__(self, sha1):
        super().__init__(f"not a valid object name: '{sha1}'")
        self.sha1 = sha1
