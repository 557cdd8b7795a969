from pathlib import Path
from typing import Optional


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    Keeps other URL forms unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    rel = url[len(prefix) :]
    return f"sqlite:///{(project_root / rel).resolve()}"


def env_flag(value: Optional[str]) -> bool:
    """Interpret an environment variable string as a boolean flag."""
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}
