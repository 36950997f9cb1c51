"""
Project explorer tree.

Folders are never stored: they are derived from the slash-delimited paths of
a project's files.
"""

from typing import Iterable, List

from .models import File, FileNode, FileTree


def _placeholder_nodes() -> List[FileNode]:
    return [
        FileNode(
            id="src",
            name="src",
            type="folder",
            path="src",
            children=[
                FileNode(id="app-tsx", name="App.tsx", type="file", path="src/App.tsx", language="typescript"),
                FileNode(id="main-ts", name="main.ts", type="file", path="src/main.ts", language="typescript"),
            ],
        ),
        FileNode(id="package-json", name="package.json", type="file", path="package.json", language="json"),
    ]


def _sort_key(node: FileNode):
    # Folders first, then names case-insensitively with lowercase before uppercase on ties
    return (node.type != "folder", node.name.lower(), node.name.swapcase())


def _sort_tree(nodes: List[FileNode]) -> List[FileNode]:
    for node in nodes:
        if node.children:
            node.children = _sort_tree(node.children)
    return sorted(nodes, key=_sort_key)


def build_file_tree(files: Iterable[File]) -> FileTree:
    """
    Build a nested folder/file tree from flat file records.

    An empty file set yields a fixed starter layout flagged with
    `placeholder=True` so callers can tell it apart from real data.

    Nodes are matched by name at each level, so the first file to introduce a
    name decides whether it is a folder or a file. When a later path wants to
    descend into a name already taken by a file, its remaining segments are
    attached at that level instead. Malformed paths (empty segments) are not
    rejected.

    Args:
        files: File records, usually all files of one project

    Returns:
        FileTree with folders sorted before files at every level
    """
    files = list(files)
    if not files:
        return FileTree(placeholder=True, nodes=_placeholder_nodes())

    tree: List[FileNode] = []
    for file in files:
        parts = file.path.split("/")
        level = tree
        current_path = ""

        for index, part in enumerate(parts):
            current_path = f"{current_path}/{part}" if current_path else part
            is_file = index == len(parts) - 1

            node = next((n for n in level if n.name == part), None)
            if node is None:
                if is_file:
                    node = FileNode(
                        id=file.id,
                        name=part,
                        type="file",
                        path=current_path,
                        language=file.language,
                    )
                else:
                    node = FileNode(id=current_path, name=part, type="folder", path=current_path, children=[])
                level.append(node)

            if not is_file and node.children is not None:
                level = node.children

    return FileTree(placeholder=False, nodes=_sort_tree(tree))
