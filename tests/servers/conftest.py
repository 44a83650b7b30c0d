from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from fastmcp import FastMCP

from kodin.ingest.models import ExtractedFiles, PackageManifest, ProjectType, RepoData, RepoFile, RepositoryStats


@pytest.fixture
def repo_data() -> RepoData:
    return RepoData(
        repo="octo/demo",
        branch="main",
        project_type=ProjectType(is_node=True),
        stats=RepositoryStats(total_files=6, docs=1, configs=1, code=2, packages=1),
        files=ExtractedFiles(
            docs=[RepoFile(path="README.md", content="# Demo\n\nA demo application.")],
            configs=[RepoFile(path="package.json", content='{"name": "demo"}')],
            code=[
                RepoFile(path="app/page.tsx", content="export default function Page() { return <main />; }"),
                RepoFile(path="app/api/route.ts", content=None),
            ],
            packages=[
                PackageManifest(
                    path="package.json",
                    json_={"name": "demo", "dependencies": {"next": "14.0.0"}, "devDependencies": {"eslint": "8"}, "scripts": {"dev": "next dev"}},
                )
            ],
        ),
    )


@pytest.fixture
async def http_client(fastmcp: FastMCP[Any]) -> AsyncGenerator[httpx.AsyncClient, Any]:
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=fastmcp.http_app()), base_url="http://test") as client:
        yield client
