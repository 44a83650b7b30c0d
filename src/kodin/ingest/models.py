from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """A model that is exchanged with the browser as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RepoFile(WireModel):
    path: str = Field(description="The path of the file relative to the repository root.")
    content: str | None = Field(default=None, description="The text of the file, or null when it could not be downloaded.")


class PackageManifest(WireModel):
    path: str = Field(description="The path of the package.json file.")
    json_: dict[str, Any] = Field(alias="json", description="The parsed package.json document.")


class ExtractedFiles(WireModel):
    docs: list[RepoFile] = Field(default_factory=list)
    configs: list[RepoFile] = Field(default_factory=list)
    code: list[RepoFile] = Field(default_factory=list)
    packages: list[PackageManifest] = Field(default_factory=list)

    def all_paths(self) -> list[str]:
        """Return the paths of the docs, configs and code files, in that order."""
        return [file.path for file in [*self.docs, *self.configs, *self.code]]


class ProjectType(WireModel):
    is_node: bool = False
    is_python: bool = False
    is_go: bool = False
    is_rust: bool = False
    is_java: bool = False
    is_monorepo: bool = False

    def labels(self) -> list[str]:
        """Return the human readable names of the detected project types."""
        names: dict[str, str] = {
            "is_node": "Node.js",
            "is_python": "Python",
            "is_go": "Go",
            "is_rust": "Rust",
            "is_java": "Java",
            "is_monorepo": "Monorepo",
        }
        return [label for field_name, label in names.items() if getattr(self, field_name)]


class RepositoryStats(WireModel):
    total_files: int = Field(description="The number of entries in the tree listing.")
    docs: int = 0
    configs: int = 0
    code: int = 0
    packages: int = 0


class RepoData(WireModel):
    repo: str = Field(description="The repository as `owner/name`.")
    branch: str = Field(description="The branch the files were read from.")
    project_type: ProjectType = Field(default_factory=ProjectType)
    stats: RepositoryStats
    files: ExtractedFiles = Field(default_factory=ExtractedFiles)
