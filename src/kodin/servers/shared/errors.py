ExtraInfoType = dict[str, str | None]


class ServerError(Exception):
    """A request error from the Kodin server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class InvalidRepositoryUrlError(ServerError):
    """The provided text does not point at a GitHub repository."""

    def __init__(self, repo_url: str | None):
        super().__init__(message="Invalid URL", extra_info={"repo_url": repo_url})
