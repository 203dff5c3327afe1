# What it does: Folds the flat list of staged paths into a hierarchy of tree objects and returns the root tree's hash
# How it does: One pass over the index builds a prefix table (directory path -> files directly inside it + names of its direct subdirectories).
# A post-order walk of that table then writes every subdirectory's tree before the tree that points at it, so each parent only ever references objects that already exist
# What data structure it uses: Dictionary keyed by directory prefix (a trie flattened into a table), Merkle Tree (the resulting tree objects)

import logging
from collections import namedtuple

from . import objects
from .index import tree_mode

logger = logging.getLogger(__name__)

DirNode = namedtuple('DirNode', ['files', 'subdirs'])


def _node(table, prefix):
    node = table.get(prefix)
    if node is None:
        node = table[prefix] = DirNode([], set())
        if prefix:
            # Register every ancestor, even ones that hold no files of their own
            parent, _, name = prefix.rpartition('/')
            _node(table, parent).subdirs.add(name)
    return node


def build_prefix_table(entries):
    """Maps '' (the root) and every staged directory to a DirNode."""
    table = {'': DirNode([], set())}
    for entry in entries:
        parent, _, name = entry.path.rpartition('/')
        _node(table, parent).files.append((name, entry))
    return table


def _write_directory(repo_root, table, prefix):
    node = table[prefix]
    tree_entries = []
    emitted = set()

    for name, entry in node.files:
        tree_entries.append(objects.TreeEntry(tree_mode(entry.mode), name, entry.sha))
        emitted.add(name)

    for name in sorted(node.subdirs):
        if name in emitted:
            logger.warning("Skipping directory '%s' in '%s': a file has the same name", name, prefix or '.')
            continue
        child_prefix = f'{prefix}/{name}' if prefix else name
        subtree = _write_directory(repo_root, table, child_prefix)
        tree_entries.append(objects.TreeEntry(objects.MODE_DIR, name, subtree))
        emitted.add(name)

    sha = objects.write_tree(repo_root, tree_entries)
    logger.debug("Tree for '%s': %s (%d entries)", prefix or '.', sha, len(tree_entries))
    return sha


def build_tree(repo_root, index):
    """
    Writes the tree objects for every entry of `index` (an Index or any
    iterable of IndexEntry) and returns the root tree id.

    The result depends only on the set of (path, mode, sha) triples, never on
    the order they were staged in. An empty index yields the empty tree.
    """
    table = build_prefix_table(index)
    return _write_directory(repo_root, table, '')
