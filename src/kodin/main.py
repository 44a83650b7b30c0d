from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging import Logger
from typing import Any, Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import get_logger

from kodin.clients.github import GitHubTutorClient
from kodin.clients.llm import LLMClient
from kodin.servers.repository import RepositoryServer
from kodin.servers.tutorial import TutorialServer
from kodin.servers.web import WebServer

logger: Logger = get_logger(name=__name__)

github_client: GitHubTutorClient = GitHubTutorClient(logger=logger)


@asynccontextmanager
async def lifespan(server: FastMCP[Any]) -> AsyncIterator[None]:  # noqa: ARG001
    try:
        yield
    finally:
        await github_client.aclose()


mcp: FastMCP[None] = FastMCP[None](name="Kodin", lifespan=lifespan)

mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

repository_server: RepositoryServer = RepositoryServer(github_client=github_client, logger=logger)
_ = repository_server.register_tools(fastmcp=mcp)
_ = repository_server.register_routes(fastmcp=mcp)

tutorial_server: TutorialServer = TutorialServer(llm_client=LLMClient(logger=logger), logger=logger)
_ = tutorial_server.register_tools(fastmcp=mcp)
_ = tutorial_server.register_routes(fastmcp=mcp)

web_server: WebServer = WebServer()
_ = web_server.register_routes(fastmcp=mcp)


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="streamable-http",
    help="The transport to run the server on. The web front end is only served over streamable-http.",
)
@click.option("--host", default="127.0.0.1", show_default=True, help="The host to bind the HTTP server to.")
@click.option("--port", default=8000, show_default=True, type=int, help="The port to bind the HTTP server to.")
def run(transport: Literal["stdio", "streamable-http"], host: str, port: int):
    if transport == "stdio":
        mcp.run(transport=transport)
        return

    logger.info(f"Serving Kodin on http://{host}:{port}/")

    mcp.run(transport=transport, host=host, port=port)


if __name__ == "__main__":
    run()
