from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from kodin.clients.errors.llm import LLMError
from kodin.clients.llm import LLMClient
from kodin.ingest.models import ProjectType, RepoData
from kodin.rendering.chapter import render_chapter_html
from kodin.sampling.prompts import PromptBuilder, SystemPromptBuilder
from kodin.sampling.utility import StructuredSamplingValidationError, sample, structured_sample
from kodin.servers.models.tutorial import (
    Chapter,
    ChapterContent,
    ChapterPlan,
    PlanTutorialRequest,
    TutorialPlan,
    WriteChapterRequest,
)
from kodin.servers.prompts.tutorial import CHAPTER_RULES, CHAPTER_SYSTEM_PROMPT, PLAN_TASK, chapter_task
from kodin.servers.shared.utility import error_response

FILE_TREE_LIMIT = 500

PLAN_DOCS_LIMIT = 3
PLAN_DOC_TRUNCATE_CHARACTERS = 4000

CHAPTER_CODE_FILES_LIMIT = 50
CHAPTER_FILE_TRUNCATE_CHARACTERS = 8000
NO_CONTENT_PLACEHOLDER = "// No content"

PLAN_MAX_TOKENS = 1500
PLAN_TEMPERATURE = 0.2

CHAPTER_MAX_TOKENS = 2000
CHAPTER_TEMPERATURE = 0.3


class ContextFile(BaseModel):
    path: str
    content: str


class PackageSummary(BaseModel):
    path: str
    name: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    scripts: list[str] = Field(default_factory=list)


class PlanContext(BaseModel):
    """What the model sees when planning the chapters."""

    repo: str
    project_type: list[str]
    file_tree: list[str]
    docs: list[ContextFile]
    packages: list[PackageSummary]

    @classmethod
    def from_repo_data(cls, repo_data: RepoData) -> "PlanContext":
        return cls(
            repo=repo_data.repo,
            project_type=repo_data.project_type.labels(),
            file_tree=repo_data.files.all_paths()[:FILE_TREE_LIMIT],
            docs=[
                ContextFile(path=doc.path, content=(doc.content or NO_CONTENT_PLACEHOLDER)[:PLAN_DOC_TRUNCATE_CHARACTERS])
                for doc in repo_data.files.docs[:PLAN_DOCS_LIMIT]
            ],
            packages=[
                PackageSummary(
                    path=package.path,
                    name=_string(package.json_.get("name")),
                    dependencies=sorted([*_keys(package.json_.get("dependencies")), *_keys(package.json_.get("devDependencies"))]),
                    scripts=_keys(package.json_.get("scripts")),
                )
                for package in repo_data.files.packages
            ],
        )


class ChapterContext(BaseModel):
    """What the model sees when writing a chapter."""

    project_type: ProjectType
    file_tree: list[str]
    files: list[ContextFile]

    @classmethod
    def from_repo_data(cls, repo_data: RepoData) -> "ChapterContext":
        return cls(
            project_type=repo_data.project_type,
            file_tree=repo_data.files.all_paths()[:FILE_TREE_LIMIT],
            files=[
                ContextFile(path=file.path, content=file.content[:CHAPTER_FILE_TRUNCATE_CHARACTERS] if file.content else NO_CONTENT_PLACEHOLDER)
                for file in repo_data.files.code[:CHAPTER_CODE_FILES_LIMIT]
            ],
        )


def _keys(value: Any) -> list[str]:  # pyright: ignore[reportAny]
    return [str(key) for key in value] if isinstance(value, dict) else []  # pyright: ignore[reportUnknownVariableType]


def _string(value: Any) -> str | None:  # pyright: ignore[reportAny]
    return value if isinstance(value, str) else None


class TutorialServer:
    """Plans tutorials and writes their chapters with a chat completion model."""

    llm_client: LLMClient
    logger: Logger

    def __init__(self, llm_client: LLMClient | None = None, logger: Logger | None = None):
        self.logger = logger or get_logger(name=__name__)
        self.llm_client = llm_client or LLMClient(logger=self.logger)

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.plan_tutorial))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.write_chapter))

        return fastmcp

    def register_routes(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.custom_route(path="/api/tutorial/plan", methods=["POST"])(self.handle_plan_tutorial)
        _ = fastmcp.custom_route(path="/api/tutorial/chapter", methods=["POST"])(self.handle_write_chapter)

        return fastmcp

    async def plan_tutorial(self, repo_data: RepoData) -> TutorialPlan:
        """Plan the chapters of a tutorial for a repository fetched with `fetch_repository`."""

        user_prompt = PromptBuilder()
        user_prompt.add_yaml_section(
            title="Project Context",
            obj=PlanContext.from_repo_data(repo_data),
            preamble=f"The repository tree (first {FILE_TREE_LIMIT} paths), its leading docs and package manifests:",
        )
        user_prompt.add_text_section(title="Task", text=PLAN_TASK)

        self.logger.info(f"Planning tutorial for {repo_data.repo}.")

        chapter_plan: ChapterPlan = await structured_sample(
            self.llm_client,
            SystemPromptBuilder().render_text(),
            user_prompt.to_messages(),
            response_model=ChapterPlan,
            max_tokens=PLAN_MAX_TOKENS,
            temperature=PLAN_TEMPERATURE,
        )

        tutorial_plan: TutorialPlan = TutorialPlan.from_chapter_plan(chapter_plan)

        self.logger.info(f"Planned {len(tutorial_plan.chapters)} chapters for {repo_data.repo}.")

        return tutorial_plan

    async def write_chapter(self, chapter: Chapter, repo_data: RepoData) -> ChapterContent:
        """Write the markdown body of one tutorial chapter."""

        chapter_context: ChapterContext = ChapterContext.from_repo_data(repo_data)

        user_prompt = PromptBuilder()
        user_prompt.add_text_section(
            title="Role",
            text="You are a senior software engineer writing a specific chapter for a project tutorial.",
        )
        user_prompt.add_text_section(title="Strict Rules", text=CHAPTER_RULES)
        user_prompt.add_yaml_section(title="Project Context (files from the repository)", obj=chapter_context)
        user_prompt.add_text_section(
            title="Chapter Info",
            text=[f"ID: {chapter.id}", f"Title: {chapter.title}", f"Summary: {chapter.summary}"],
        )
        user_prompt.add_text_section(title="Task", text=chapter_task(chapter.title))

        self.logger.info(f"Generating chapter {chapter.id} using context files: {[file.path for file in chapter_context.files]}")

        content, _ = await sample(
            self.llm_client,
            CHAPTER_SYSTEM_PROMPT,
            user_prompt.to_messages(),
            max_tokens=CHAPTER_MAX_TOKENS,
            temperature=CHAPTER_TEMPERATURE,
        )

        self.logger.info(f"Generated chapter {chapter.id} length: {len(content)}")

        return ChapterContent(content=content, html=render_chapter_html(content))

    async def handle_plan_tutorial(self, request: Request) -> Response:
        try:
            body: PlanTutorialRequest = PlanTutorialRequest.model_validate_json(await request.body())
        except ValidationError:
            return error_response(error="Invalid request body", status_code=400)

        if body.repo_data is None:
            return error_response(error="Missing repo data", status_code=400)

        try:
            tutorial_plan: TutorialPlan = await self.plan_tutorial(repo_data=body.repo_data)
        except (LLMError, StructuredSamplingValidationError) as e:
            self.logger.exception("Tutorial planning error")
            return error_response(error="Tutorial planning failed", status_code=500, message=str(e))

        return JSONResponse(content=tutorial_plan.to_wire())

    async def handle_write_chapter(self, request: Request) -> Response:
        try:
            body: WriteChapterRequest = WriteChapterRequest.model_validate_json(await request.body())
        except ValidationError:
            return error_response(error="Missing chapter or repo data", status_code=400)

        if body.chapter is None or body.repo_data is None:
            return error_response(error="Missing chapter or repo data", status_code=400)

        try:
            chapter_content: ChapterContent = await self.write_chapter(chapter=body.chapter, repo_data=body.repo_data)
        except LLMError as e:
            self.logger.exception("Chapter generation error")
            return error_response(error="Chapter generation failed", status_code=500, message=str(e))

        return JSONResponse(content=chapter_content.to_wire())
