import os
from collections.abc import Awaitable, Callable, Sequence
from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any, Literal, overload
from urllib.parse import quote

import httpx
from githubkit import GitHub as GitHubKit
from githubkit import UnauthAuthStrategy
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse
from githubkit.retry import RetryChainDecision, RetryRateLimit, RetryServerError
from pydantic import BaseModel

from kodin.clients.errors.github import RequestError, ResourceNotFoundError
from kodin.clients.models.github import Repository
from kodin.models.repository.tree import RepositoryTree

if TYPE_CHECKING:
    from githubkit.versions.v2022_11_28.models import Commit as GitHubKitCommit
    from githubkit.versions.v2022_11_28.models import GitTree as GitHubKitGitTree

NOT_FOUND_ERROR = 404

RAW_CONTENT_BASE_URL = "https://raw.githubusercontent.com"

DEFAULT_RAW_TIMEOUT_SECONDS = 30.0

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]


def extract_response[T: GITHUBKIT_RESPONSE_TYPE](response: GitHubKitResponse[T], /) -> T:
    """Unwrap the parsed payload of a githubkit response."""

    return response.parsed_data


def get_github_token() -> str | None:
    for env_var in ("GITHUB_TOKEN", "GITHUB_PERSONAL_ACCESS_TOKEN"):
        if token := os.environ.get(env_var):
            return token
    return None


def get_githubkit_client() -> GitHubKit[Any]:
    # Retry server errors up to 3 times
    retry_server_error = RetryServerError()

    # Retry rate limit errors up to 3 times
    retry_rate_limit = RetryRateLimit(max_retry=3)

    retry_chain = RetryChainDecision(
        retry_server_error,
        retry_rate_limit,
    )

    if token := get_github_token():
        return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=token), auto_retry=retry_chain)

    # Public repositories can be read without a token, at a much lower rate limit.
    return GitHubKit[UnauthAuthStrategy](auth=UnauthAuthStrategy(), auto_retry=retry_chain)


def build_raw_url(owner: str, repo: str, branch: str, path: str) -> str:
    return f"{RAW_CONTENT_BASE_URL}/{owner}/{repo}/{quote(branch, safe='/')}/{quote(path, safe='/')}"


class GitHubTutorClient:
    """Reads repository metadata and trees through the GitHub REST API and file contents from raw.githubusercontent.com."""

    githubkit_client: GitHubKit[Any]
    http_client: httpx.AsyncClient
    logger: Logger

    verbose: bool

    def __init__(
        self,
        githubkit_client: GitHubKit[Any] | None = None,
        http_client: httpx.AsyncClient | None = None,
        logger: Logger | None = None,
        verbose: bool = True,
    ):
        self.githubkit_client = githubkit_client or get_githubkit_client()
        self.http_client = http_client or httpx.AsyncClient(timeout=DEFAULT_RAW_TIMEOUT_SECONDS, follow_redirects=True)
        self.logger = logger or getLogger(__name__)
        self.verbose = verbose

    @overload
    async def _call_rest[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        *,
        error_on_not_found: Literal[True],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T: ...

    @overload
    async def _call_rest[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        *,
        error_on_not_found: bool = False,
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None: ...

    async def _call_rest[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        *,
        error_on_not_found: bool = False,
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None:
        """Call a githubkit REST method and return its parsed payload.

        A 404 returns None, or raises ResourceNotFoundError when `error_on_not_found` is set. Every other
        failure is raised as a RequestError.
        """

        describe: str = f"{action} ({', '.join(f'{key}={value}' for key, value in request_args.items())})"  # pyright: ignore[reportAny]

        (self.logger.info if self.verbose else self.logger.debug)(f"GitHub: {describe}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            if e.response.status_code != NOT_FOUND_ERROR:
                self.logger.exception(f"GitHub: {describe} failed with {e.response.status_code}")
                raise RequestError(action=action, message=str(e)) from e

            if error_on_not_found:
                raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

            self.logger.debug(f"GitHub: {describe} was not found")
            return None
        except GitHubKitGitHubException as e:
            self.logger.exception(f"GitHub: {describe} failed")
            raise RequestError(action=action, message=str(e)) from e

        return extract_response(response)

    @overload
    async def get_repository(self, owner: str, repo: str, error_on_not_found: Literal[True]) -> Repository: ...

    @overload
    async def get_repository(self, owner: str, repo: str, error_on_not_found: Literal[False] = False) -> Repository | None: ...

    async def get_repository(
        self,
        owner: str,
        repo: str,
        error_on_not_found: bool = False,
    ) -> Repository | None:
        """Get the metadata of a repository, including its default branch."""

        if githubkit_repository := await self._call_rest(
            action="Get repository",
            error_on_not_found=error_on_not_found,
            method=self.githubkit_client.rest.repos.async_get,
            owner=owner,
            repo=repo,
        ):
            return Repository.from_full_repository(full_repository=githubkit_repository)

        return None

    async def get_branch_tree_sha(self, owner: str, repo: str, branch: str) -> str:
        """Get the SHA of the tree at the head commit of a branch.

        Args:
            owner: The owner of the repository.
            repo: The name of the repository.
            branch: The branch, tag or commit SHA to resolve.
        """

        commit: GitHubKitCommit = await self._call_rest(
            action="Get branch head commit",
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_get_commit,
            owner=owner,
            repo=repo,
            ref=branch,
        )

        return commit.commit.tree.sha

    async def get_repository_tree(self, owner: str, repo: str, tree_sha: str) -> RepositoryTree:
        """Get the recursive tree listing of a repository.

        Args:
            owner: The owner of the repository.
            repo: The name of the repository.
            tree_sha: The SHA of the tree to list, usually the tree of a branch head commit.
        """

        tree: GitHubKitGitTree = await self._call_rest(
            action="Get Repository Tree",
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_get_tree,
            owner=owner,
            repo=repo,
            tree_sha=tree_sha,
            recursive="1",
        )

        repository_tree: RepositoryTree = RepositoryTree.from_git_tree(git_tree=tree)

        if repository_tree.truncated:
            self.logger.warning(f"GitHub truncated the tree listing of {owner}/{repo} at {repository_tree.count_entries} entries.")

        return repository_tree

    async def get_raw_file(self, owner: str, repo: str, branch: str, path: str) -> str | None:
        """Get the text of a file from raw.githubusercontent.com.

        Returns None when the download does not succeed.
        """

        url: str = build_raw_url(owner=owner, repo=repo, branch=branch, path=path)

        self.logger.debug(f"Downloading {url}")

        try:
            response: httpx.Response = await self.http_client.get(url)
        except httpx.HTTPError as e:
            self.logger.warning(f"Error downloading {url}: {e}")
            return None

        if not response.is_success:
            self.logger.debug(f"Downloading {url} returned {response.status_code}")
            return None

        return response.text

    async def aclose(self) -> None:
        await self.http_client.aclose()
