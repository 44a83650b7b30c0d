from typing import Annotated

from pydantic import Field

REPO_URL = Annotated[
    str,
    Field(description="The URL of a public GitHub repository, for example `https://github.com/owner/repo`."),
]
