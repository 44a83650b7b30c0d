from collections.abc import Sequence
from typing import Literal, Self

from githubkit.versions.v2022_11_28.models import GitTree
from pydantic import BaseModel, Field

TreeEntryType = Literal["blob", "tree", "commit"]


class TreeEntry(BaseModel):
    """A single entry of a recursive git tree listing."""

    path: str = Field(description="The path of the entry relative to the repository root.")
    type: TreeEntryType = Field(description="`blob` for files, `tree` for directories, `commit` for submodules.")

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"


class RepositoryTree(BaseModel):
    entries: list[TreeEntry]
    truncated: bool = Field(
        default=False,
        description="Whether GitHub truncated the listing. If true, the entries do not contain all files.",
    )

    @classmethod
    def from_git_tree(cls, git_tree: GitTree) -> Self:
        entries: list[TreeEntry] = [
            TreeEntry(path=tree_item.path, type=tree_item.type)  # pyright: ignore[reportArgumentType]
            for tree_item in git_tree.tree
            if tree_item.path is not None and tree_item.type in ("blob", "tree", "commit")
        ]

        return cls(entries=entries, truncated=git_tree.truncated)

    @classmethod
    def from_paths(cls, paths: Sequence[str]) -> Self:
        """Build a tree of blobs from plain paths."""

        return cls(entries=[TreeEntry(path=path, type="blob") for path in paths])

    def paths(self) -> list[str]:
        """Return the path of every entry in listing order."""
        return [entry.path for entry in self.entries]

    def blobs(self) -> list[TreeEntry]:
        return [entry for entry in self.entries if entry.is_blob]

    @property
    def count_entries(self) -> int:
        return len(self.entries)
