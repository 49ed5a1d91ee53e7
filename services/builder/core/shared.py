from __future__ import annotations

import os
import uuid
from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL


@lru_cache(maxsize=1)
def _repo_root() -> Path:
    # Prefer APP_STATE_DIR (tests set this per-test), then REPO_ROOT
    env_root = os.getenv("APP_STATE_DIR") or os.getenv("REPO_ROOT")
    if env_root:
        p = Path(env_root)
        p.mkdir(parents=True, exist_ok=True)
        return p

    # Default to the working directory. If not writable, use /tmp.
    p = Path.cwd()
    try:
        (p / ".write_test").write_text("ok", encoding="utf-8")
        (p / ".write_test").unlink(missing_ok=True)
        return p
    except OSError:
        tmp = Path("/tmp/blueprint-builder")
        tmp.mkdir(parents=True, exist_ok=True)
        return tmp


def _reset_repo_root_cache_for_tests() -> None:
    _repo_root.cache_clear()
    _create_engine.cache_clear()


def _projects_db_path(repo_root: Path | str | None = None) -> Path:
    base = Path(repo_root) if repo_root is not None else _repo_root()
    db_path = base / "data" / "projects.db"
    # Ensure directories exist for SQLite (prevents OperationalError)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


def _database_url(repo_root: Path | str | None = None) -> str:
    """
    If DATABASE_URL is set, return it verbatim.
    Otherwise, return a portable SQLite URL pointing to data/projects.db
    under the given repo_root (or the cached _repo_root() if None).
    """
    url = (os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url

    db_path = _projects_db_path(repo_root)
    url_obj = URL.create(
        "sqlite",
        database=db_path.as_posix(),
        query={"check_same_thread": "false"},
    )
    return url_obj.render_as_string(hide_password=False)


@lru_cache(maxsize=8)
def _create_engine(url: str) -> Engine:
    # One pooled engine per URL, shared by every request.
    return create_engine(url, future=True, pool_pre_ping=True)


def _engine() -> Engine:
    return _create_engine(_database_url(_repo_root()))


def _new_id() -> str:
    return str(uuid.uuid4())
