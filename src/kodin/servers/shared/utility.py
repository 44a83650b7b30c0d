import re
from typing import Any

from starlette.responses import JSONResponse

from kodin.servers.shared.errors import InvalidRepositoryUrlError

GITHUB_REPOSITORY_URL_PATTERN = re.compile(r"github\.com[/:]([^/\s?#]+)/([^/\s?#]+)")


def parse_repo_url(repo_url: str | None) -> tuple[str, str]:
    """Extract the owner and repository name from anything containing `github.com/<owner>/<repo>`.

    Raises:
        InvalidRepositoryUrlError: If the URL does not name a repository.
    """

    if not repo_url or not (match := GITHUB_REPOSITORY_URL_PATTERN.search(repo_url)):
        raise InvalidRepositoryUrlError(repo_url=repo_url)

    owner, repo = match.group(1), match.group(2).removesuffix(".git")

    if not repo:
        raise InvalidRepositoryUrlError(repo_url=repo_url)

    return owner, repo


def error_response(error: str, status_code: int, message: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"error": error}

    if message is not None:
        content["message"] = message

    return JSONResponse(content=content, status_code=status_code)
