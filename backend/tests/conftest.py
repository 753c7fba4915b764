from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch) -> None:
    from sqlmodel import SQLModel

    from rubriq import db
    from rubriq.settings import settings

    for name in ("OPENAI_API_KEY", "OPENAI_MOCK", "BACKEND_API_KEY", "CORS_ALLOW_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(settings, "data_dir", str(tmp_path / "data"))
    monkeypatch.setattr(settings, "sqlite_path", str(tmp_path / "test.db"))

    engine = db.build_engine(settings.sqlite_path)
    SQLModel.metadata.create_all(engine)
    monkeypatch.setattr(db, "engine", engine)
    yield
    engine.dispose()


@pytest.fixture
def essay_text() -> str:
    return (
        "The writer shows a clear contrast between the two cities. "
        "However, the argument is simple because the evidence is thin.\n\n"
        "Both texts use language to suggest danger, whereas the second relies on structure. "
        "Therefore the reader feels tension throughout."
    )
