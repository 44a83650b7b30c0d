from typing import Self

from githubkit.versions.v2022_11_28.models import FullRepository as GitHubKitFullRepository
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BRANCH = "main"


class Repository(BaseModel):
    """The parts of a repository's metadata needed to read its files."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    full_name: str = Field(description="The owner and name of the repository, e.g. `owner/repo`.")
    default_branch: str = Field(default=DEFAULT_BRANCH, description="The default branch of the repository.")

    @classmethod
    def from_full_repository(cls, full_repository: GitHubKitFullRepository) -> Self:
        return cls(
            full_name=full_repository.full_name,
            default_branch=full_repository.default_branch or DEFAULT_BRANCH,
        )
