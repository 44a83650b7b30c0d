from typing import Self

from pydantic import Field, field_validator

from kodin.ingest.models import RepoData, WireModel

MIN_CHAPTERS = 3
MAX_CHAPTERS = 10


class Chapter(WireModel):
    """A titled section of the tutorial."""

    id: int | str = Field(description="The identifier of the chapter. Chapters are numbered from 1.")
    title: str = Field(description="The title of the chapter.")
    summary: str = Field(default="", description="One or two sentences describing what the chapter covers.")
    content: str | None = Field(default=None, description="The markdown body of the chapter, once it has been written.")


class PlannedChapter(WireModel):
    """A chapter as proposed by the model."""

    id: int | str = Field(description="The number of the chapter, starting at 1.")
    title: str = Field(description="A short title for the chapter.")
    summary: str = Field(description="One or two sentences describing what the chapter covers and which files it explains.")


class ChapterPlan(WireModel):
    """The chapters of a tutorial, in reading order."""

    chapters: list[PlannedChapter] = Field(
        description=f"Between {MIN_CHAPTERS} and {MAX_CHAPTERS} chapters, in the order a newcomer should read them."
    )

    @field_validator("chapters")
    @classmethod
    def validate_chapters(cls, v: list[PlannedChapter]) -> list[PlannedChapter]:
        if not MIN_CHAPTERS <= len(v) <= MAX_CHAPTERS:
            msg = f"A tutorial must have between {MIN_CHAPTERS} and {MAX_CHAPTERS} chapters, got {len(v)}."
            raise ValueError(msg)
        return v


class TutorialPlan(WireModel):
    chapters: list[Chapter]

    @classmethod
    def from_chapter_plan(cls, chapter_plan: ChapterPlan) -> Self:
        return cls(
            chapters=[
                Chapter(id=number, title=planned.title.strip(), summary=planned.summary.strip())
                for number, planned in enumerate(chapter_plan.chapters, start=1)
            ]
        )


class ChapterContent(WireModel):
    content: str = Field(description="The markdown body of the chapter.")
    html: str = Field(description="The chapter rendered to HTML with highlighted code blocks.")


class PlanTutorialRequest(WireModel):
    repo_data: RepoData | None = None


class WriteChapterRequest(WireModel):
    chapter: Chapter | None = None
    repo_data: RepoData | None = None


class FetchRepositoryRequest(WireModel):
    repo_url: str | None = None
