from collections.abc import Iterable
from typing import Literal

from kodin.ingest.models import ProjectType

FileCategory = Literal["doc", "config", "code"]

DOC_FILES: tuple[str, ...] = ("readme.md", "readme", "license", "contributors", "contributing.md")

CONFIG_FILES: tuple[str, ...] = (
    "package.json",
    "tsconfig.json",
    "vite.config.ts",
    "vite.config.js",
    "next.config.js",
    "angular.json",
    "tailwind.config.js",
    "postcss.config.js",
    "webpack.config.js",
    "babel.config.js",
    "pyproject.toml",
    "requirements.txt",
    "go.mod",
    "cargo.toml",
    "pom.xml",
    "build.gradle",
    "makefile",
    ".env.example",
)

CODE_EXTENSIONS: tuple[str, ...] = (
    ".js",
    ".ts",
    ".jsx",
    ".tsx",
    ".py",
    ".java",
    ".go",
    ".rs",
    ".cpp",
    ".c",
    ".cs",
    ".php",
    ".rb",
    ".kt",
    ".swift",
)

IGNORED_DIRECTORIES: frozenset[str] = frozenset({"node_modules", "dist", "build", "coverage", ".next", "out", "target", "bin"})


def is_ignored(path: str) -> bool:
    """Whether the path lives under one of the ignored top-level directories."""
    top_level, _, rest = path.partition("/")
    return bool(rest) and top_level in IGNORED_DIRECTORIES


def is_doc_file(path: str) -> bool:
    return path.lower().endswith(DOC_FILES)


def is_config_file(path: str) -> bool:
    return path.lower().endswith(CONFIG_FILES)


def is_code_file(path: str) -> bool:
    return path.endswith(CODE_EXTENSIONS)


def is_package_manifest(path: str) -> bool:
    return path.endswith("package.json")


def classify_path(path: str) -> FileCategory | None:
    """Assign a path to at most one category. Docs win over configs, configs win over code."""

    if is_ignored(path):
        return None

    if is_doc_file(path):
        return "doc"

    if is_config_file(path):
        return "config"

    if is_code_file(path):
        return "code"

    return None


def detect_project_types(paths: Iterable[str]) -> ProjectType:
    lowered: list[str] = [path.lower() for path in paths]

    package_manifests: int = sum(1 for path in lowered if path.endswith("package.json"))

    return ProjectType(
        is_node=package_manifests > 0,
        is_python=any(path.endswith(("requirements.txt", "pyproject.toml")) for path in lowered),
        is_go=any(path.endswith("go.mod") for path in lowered),
        is_rust=any(path.endswith("cargo.toml") for path in lowered),
        is_java=any(path.endswith(("pom.xml", "build.gradle")) for path in lowered),
        is_monorepo=package_manifests > 1,
    )
