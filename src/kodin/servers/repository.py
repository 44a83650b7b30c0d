import os
from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from kodin.clients.errors.github import RequestError, ResourceNotFoundError
from kodin.clients.github import GitHubTutorClient
from kodin.clients.models.github import Repository
from kodin.ingest.extract import DEFAULT_CODE_FILE_LIMIT, build_repo_data, extract_files
from kodin.ingest.models import ExtractedFiles, RepoData
from kodin.models.repository.tree import RepositoryTree
from kodin.servers.models.tutorial import FetchRepositoryRequest
from kodin.servers.shared.annotations import REPO_URL
from kodin.servers.shared.errors import InvalidRepositoryUrlError
from kodin.servers.shared.utility import error_response, parse_repo_url

logger: Logger = get_logger(name=__name__)


def clamp_code_file_limit(limit: int) -> int:
    """Code file limits can be lowered, never raised above the default of 300."""
    return max(0, min(limit, DEFAULT_CODE_FILE_LIMIT))


def get_code_file_limit() -> int:
    """Read `KODIN_CODE_FILE_LIMIT`, falling back to the default when it is unset or not a number."""

    value: str | None = os.getenv("KODIN_CODE_FILE_LIMIT")

    if not value:
        return DEFAULT_CODE_FILE_LIMIT

    try:
        limit = int(value)
    except ValueError:
        logger.warning(f"Ignoring KODIN_CODE_FILE_LIMIT={value!r}, it is not a number. Using {DEFAULT_CODE_FILE_LIMIT}.")
        return DEFAULT_CODE_FILE_LIMIT

    return clamp_code_file_limit(limit)


class RepositoryServer:
    """Ingests a public GitHub repository into the payload the tutorial tools work from."""

    github_client: GitHubTutorClient
    logger: Logger
    code_file_limit: int

    def __init__(self, github_client: GitHubTutorClient | None = None, logger: Logger | None = None, code_file_limit: int | None = None):
        self.logger = logger or get_logger(name=__name__)
        self.github_client = github_client or GitHubTutorClient(logger=self.logger)
        self.code_file_limit = get_code_file_limit() if code_file_limit is None else clamp_code_file_limit(code_file_limit)

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.fetch_repository))

        return fastmcp

    def register_routes(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.custom_route(path="/api/github", methods=["POST"])(self.handle_fetch_repository)

        return fastmcp

    async def fetch_repository(self, repo_url: REPO_URL) -> RepoData:
        """Fetch a public GitHub repository's docs, config files and code, classified and ready for tutorial planning."""

        owner, repo = parse_repo_url(repo_url)

        repository: Repository = await self.github_client.get_repository(owner=owner, repo=repo, error_on_not_found=True)

        branch: str = repository.default_branch

        tree_sha: str = await self.github_client.get_branch_tree_sha(owner=owner, repo=repo, branch=branch)

        tree: RepositoryTree = await self.github_client.get_repository_tree(owner=owner, repo=repo, tree_sha=tree_sha)

        self.logger.info(f"Fetching files of {repository.full_name}@{branch} from a tree of {tree.count_entries} entries.")

        async def fetch_file(path: str) -> str | None:
            return await self.github_client.get_raw_file(owner=owner, repo=repo, branch=branch, path=path)

        files: ExtractedFiles = await extract_files(tree=tree, fetch_file=fetch_file, code_limit=self.code_file_limit)

        return build_repo_data(owner=owner, repo=repo, branch=branch, tree=tree, files=files)

    async def handle_fetch_repository(self, request: Request) -> Response:
        try:
            body: FetchRepositoryRequest = FetchRepositoryRequest.model_validate_json(await request.body())
        except ValidationError:
            return error_response(error="Invalid request body", status_code=400)

        try:
            repo_data: RepoData = await self.fetch_repository(repo_url=body.repo_url or "")
        except InvalidRepositoryUrlError as e:
            return error_response(error="Invalid URL", status_code=400, message=str(e))
        except ResourceNotFoundError as e:
            return error_response(error="Repository not found", status_code=404, message=str(e))
        except RequestError as e:
            return error_response(error="GitHub request failed", status_code=502, message=str(e))

        return JSONResponse(content=repo_data.to_wire())
