from kodin.servers.models.tutorial import MAX_CHAPTERS, MIN_CHAPTERS

CHAPTER_SYSTEM_PROMPT = "You are a helpful coding tutor."

PLAN_TASK = f"""
Plan a tutorial that walks a newcomer through this repository.

- Propose between {MIN_CHAPTERS} and {MAX_CHAPTERS} chapters, ordered from the big picture to the details.
- The first chapter is an overview of the project structure.
- Each chapter covers one concrete area of this codebase (for example routing, data access, authentication, build setup).
- Only propose chapters the files listed in the context can support.
- Number the chapters from 1.
"""

CHAPTER_RULES = """
1. You MUST use the code provided in the Project Context.
2. CITATION REQUIRED: When you explain a concept, you must reference the specific file path where it is implemented.
3. DO NOT generate a generic "How to build X" tutorial.
4. FOCUS ONLY on the specific topic of the Chapter Info below.
5. If the chapter is about "Auth", only explain the Auth files in the context.
6. If the chapter is "Project Structure" or an overview, use the `file_tree` to describe the architecture.
7. Use Markdown. Use code blocks with the language specified (e.g. ```tsx).
"""


def chapter_task(title: str) -> str:
    return f"""
Write the detailed tutorial content for this SINGLE chapter.
Start immediately with a level 1 heading (# {title}).
"""
