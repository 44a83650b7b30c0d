from functools import cache
from pathlib import Path
from typing import Any

from fastmcp.server import FastMCP
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response

from kodin.rendering.chapter import pygments_css

STATIC_DIR = Path(__file__).parent / "static"

PYGMENTS_CSS_PLACEHOLDER = "/* pygments */"


@cache
def render_landing_page() -> str:
    template: str = (STATIC_DIR / "index.html").read_text(encoding="utf-8")
    return template.replace(PYGMENTS_CSS_PLACEHOLDER, pygments_css())


class WebServer:
    """Serves the browser front end for the tutorial API."""

    def register_routes(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.custom_route(path="/", methods=["GET"])(self.landing_page)
        _ = fastmcp.custom_route(path="/health", methods=["GET"])(self.health)

        return fastmcp

    async def landing_page(self, request: Request) -> Response:  # noqa: ARG002
        return HTMLResponse(content=render_landing_page())

    async def health(self, request: Request) -> Response:  # noqa: ARG002
        return JSONResponse(content={"status": "ok"})
