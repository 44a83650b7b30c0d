from collections.abc import AsyncGenerator, Callable
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from fastmcp import FastMCP
from githubkit.exception import RequestFailed

from kodin.clients.github import GitHubTutorClient
from kodin.clients.llm import LLMClient

RAW_FILES: dict[str, str] = {
    "README.md": "# Demo\n\nA demo application.",
    "package.json": '{"name": "demo", "dependencies": {"next": "14.0.0"}, "scripts": {"dev": "next dev"}}',
    "app/page.tsx": "export default function Page() { return <main />; }",
    "app/api/route.ts": "export async function POST() {}",
    "server/main.py": "print('hello')",
}

TREE_ENTRIES: list[tuple[str, str]] = [
    ("README.md", "blob"),
    ("package.json", "blob"),
    ("app", "tree"),
    ("app/page.tsx", "blob"),
    ("app/api", "tree"),
    ("app/api/route.ts", "blob"),
    ("server", "tree"),
    ("server/main.py", "blob"),
    ("node_modules", "tree"),
    ("node_modules/left-pad/index.js", "blob"),
    ("public/logo.png", "blob"),
]


class FakeRequestFailed(RequestFailed):
    """A RequestFailed raised without a real GitHub response."""

    def __init__(self, status_code: int, path: str):  # pyright: ignore[reportMissingSuperCall]
        Exception.__init__(self, f"Response status code: {status_code}")
        self.request = httpx.Request("GET", f"https://api.github.com{path}")
        self.response = SimpleNamespace(status_code=status_code)  # pyright: ignore[reportAttributeAccessIssue]


def parsed(data: Any) -> SimpleNamespace:  # pyright: ignore[reportAny]
    return SimpleNamespace(parsed_data=data)


class FakeRepos:
    def __init__(self, repositories: dict[str, SimpleNamespace], tree_shas: dict[str, str]):
        self.repositories = repositories
        self.tree_shas = tree_shas

    async def async_get(self, owner: str, repo: str) -> SimpleNamespace:
        if f"{owner}/{repo}" not in self.repositories:
            raise FakeRequestFailed(404, f"/repos/{owner}/{repo}")
        return parsed(self.repositories[f"{owner}/{repo}"])

    async def async_get_commit(self, owner: str, repo: str, ref: str) -> SimpleNamespace:
        if ref not in self.tree_shas:
            raise FakeRequestFailed(404, f"/repos/{owner}/{repo}/commits/{ref}")
        return parsed(SimpleNamespace(commit=SimpleNamespace(tree=SimpleNamespace(sha=self.tree_shas[ref]))))


class FakeGit:
    def __init__(self, trees: dict[str, list[tuple[str, str]]]):
        self.trees = trees
        self.calls: list[dict[str, Any]] = []

    async def async_get_tree(self, owner: str, repo: str, tree_sha: str, recursive: str | None = None) -> SimpleNamespace:
        self.calls.append({"owner": owner, "repo": repo, "tree_sha": tree_sha, "recursive": recursive})
        if tree_sha not in self.trees:
            raise FakeRequestFailed(500, f"/repos/{owner}/{repo}/git/trees/{tree_sha}")
        items = [SimpleNamespace(path=path, type=entry_type) for path, entry_type in self.trees[tree_sha]]
        return parsed(SimpleNamespace(tree=items, truncated=False))


def fake_full_repository(owner: str, repo: str, default_branch: str = "main") -> SimpleNamespace:
    return SimpleNamespace(
        name=repo,
        full_name=f"{owner}/{repo}",
        description="A demo repository.",
        html_url=f"https://github.com/{owner}/{repo}",
        stargazers_count=42,
        language="TypeScript",
        default_branch=default_branch,
        topics=["demo"],
    )


def build_fake_githubkit(tree_entries: list[tuple[str, str]]) -> SimpleNamespace:
    repos = FakeRepos(repositories={"octo/demo": fake_full_repository("octo", "demo")}, tree_shas={"main": "tree-sha"})
    git = FakeGit(trees={"tree-sha": tree_entries})
    return SimpleNamespace(rest=SimpleNamespace(repos=repos, git=git))


def build_raw_transport(raw_files: dict[str, str], requested: list[str] | None = None) -> httpx.MockTransport:
    prefix = "/octo/demo/main/"

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix(prefix)
        if requested is not None:
            requested.append(path)
        if path in raw_files:
            return httpx.Response(200, text=raw_files[path])
        return httpx.Response(404, text="404: Not Found")

    return httpx.MockTransport(handler)


@pytest.fixture
def raw_requests() -> list[str]:
    return []


@pytest.fixture
def fake_githubkit() -> SimpleNamespace:
    return build_fake_githubkit(TREE_ENTRIES)


@pytest.fixture
async def github_client(fake_githubkit: SimpleNamespace, raw_requests: list[str]) -> AsyncGenerator[GitHubTutorClient, Any]:
    client = GitHubTutorClient(
        githubkit_client=fake_githubkit,  # pyright: ignore[reportArgumentType]
        http_client=httpx.AsyncClient(transport=build_raw_transport(RAW_FILES, raw_requests)),
    )
    yield client
    await client.aclose()


class FakeLLMClient(LLMClient):
    """Replays canned completions and records the prompts it was sent."""

    def __init__(self, responses: list[str] | Callable[[str, list[Any]], str]):
        super().__init__(model="fake-model")
        self.responses = responses
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system_prompt: str, messages: list[Any], *, max_tokens: int = 2000, temperature: float = 0.0) -> str:
        self.calls.append({"system_prompt": system_prompt, "messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        if callable(self.responses):
            return self.responses(system_prompt, messages)
        return self.responses.pop(0)


@pytest.fixture
def fastmcp() -> FastMCP[Any]:
    return FastMCP[Any](name="Kodin Test Server")


def user_prompt_text(call: dict[str, Any]) -> str:
    return "\n".join(str(message["content"]) for message in call["messages"])
