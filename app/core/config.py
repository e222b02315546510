import os
from importlib import metadata
from pathlib import Path
from typing import Optional

REPO_ROOT = Path(__file__).resolve().parent.parent.parent
DIST_NAME = "demo-server"


def _issue_url() -> Optional[str]:
    """Issue tracker link built from the installed distribution's Repository URL."""
    try:
        urls = metadata.metadata(DIST_NAME).get_all("Project-URL") or []
    except metadata.PackageNotFoundError:
        return None
    for entry in urls:
        label, _, url = entry.partition(",")
        if label.strip().lower() == "repository" and url.strip():
            return url.strip().rstrip("/") + "/issues/new"
    return None


class Settings:
    # API Settings
    PROJECT_NAME: str = "Demo Server"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Logging: "info", "debug", or directives like "info,app.api=debug"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_FILE: Optional[str] = None

    # Tracing
    SERVICE_NAME: str = "axum-server"
    TRACING_ENABLED: bool = True

    # Request policies
    CONCURRENCY_LIMIT: int = 64
    REQUEST_TIMEOUT: float = 30.0
    # None waits for every in-flight request
    GRACEFUL_SHUTDOWN_TIMEOUT: Optional[float] = None

    # Static manifest served on /cargo
    MANIFEST_PATH: str = str(REPO_ROOT / "pyproject.toml")

    ISSUE_URL: Optional[str] = _issue_url()


settings = Settings()
