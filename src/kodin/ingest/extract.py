import json
from collections.abc import Awaitable, Callable
from logging import Logger
from typing import Any

from fastmcp.utilities.logging import get_logger

from kodin.ingest.classify import FileCategory, classify_path, detect_project_types, is_package_manifest
from kodin.ingest.models import ExtractedFiles, PackageManifest, RepoData, RepoFile, RepositoryStats
from kodin.models.repository.tree import RepositoryTree

DEFAULT_CODE_FILE_LIMIT = 300

FetchFile = Callable[[str], Awaitable[str | None]]

logger: Logger = get_logger(name=__name__)


def parse_package_manifest(path: str, content: str | None) -> PackageManifest | None:
    """Parse a package.json body. An empty body parses as an empty manifest, invalid JSON yields None."""

    try:
        document: Any = json.loads(content or "{}")  # pyright: ignore[reportAny]
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse {path}: {e}")
        return None

    if not isinstance(document, dict):
        logger.warning(f"Could not parse {path}: expected a JSON object, got {type(document).__name__}")
        return None

    return PackageManifest(path=path, json_=document)  # pyright: ignore[reportUnknownArgumentType]


async def extract_files(tree: RepositoryTree, fetch_file: FetchFile, code_limit: int = DEFAULT_CODE_FILE_LIMIT) -> ExtractedFiles:
    """Walk the tree once, classify every blob and download the ones worth reading.

    Downloads happen one at a time in listing order. Code files beyond `code_limit` are skipped without
    being downloaded.
    """

    extracted = ExtractedFiles()

    for entry in tree.blobs():
        category: FileCategory | None = classify_path(entry.path)

        if category is None:
            continue

        if category == "code" and len(extracted.code) >= code_limit:
            continue

        repo_file = RepoFile(path=entry.path, content=await fetch_file(entry.path))

        if category == "doc":
            extracted.docs.append(repo_file)
        elif category == "config":
            extracted.configs.append(repo_file)

            if is_package_manifest(entry.path) and (manifest := parse_package_manifest(entry.path, repo_file.content)):
                extracted.packages.append(manifest)
        else:
            extracted.code.append(repo_file)

    logger.info(
        f"Extracted {len(extracted.docs)} docs, {len(extracted.configs)} configs, {len(extracted.code)} code files "
        f"and {len(extracted.packages)} package manifests."
    )

    return extracted


def build_repo_data(owner: str, repo: str, branch: str, tree: RepositoryTree, files: ExtractedFiles) -> RepoData:
    return RepoData(
        repo=f"{owner}/{repo}",
        branch=branch,
        project_type=detect_project_types(tree.paths()),
        stats=RepositoryStats(
            total_files=tree.count_entries,
            docs=len(files.docs),
            configs=len(files.configs),
            code=len(files.code),
            packages=len(files.packages),
        ),
        files=files,
    )
