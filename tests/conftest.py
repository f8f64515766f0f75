from __future__ import annotations

from pathlib import Path
import sys

import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


from persistence import CollectionSchema, DocumentStore  # noqa: E402


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    p = tmp_path / "data"
    p.mkdir()
    return p


@pytest.fixture
def store(data_dir: Path) -> DocumentStore:
    return DocumentStore(data_dir)


@pytest.fixture
def quiz_schema() -> CollectionSchema:
    return CollectionSchema(
        required=("title",),
        mutable=("title", "category"),
        defaults={"views": 0, "tags": []},
        counters=("views",),
    )


@pytest.fixture
def quizzes(store: DocumentStore, quiz_schema: CollectionSchema):
    return store.open("quizzes", quiz_schema)


@pytest.fixture
def settings(data_dir: Path):
    from settings import Settings

    return Settings(
        data_dir=data_dir,
        persist_to_disk=True,
        openai_api_key="test-key",
        openai_model="gpt-4.1-mini",
        openai_url="https://api.openai.invalid/v1/responses",
        max_output_tokens=1200,
        generation_timeout=5.0,
        cors_origins=("*",),
        log_level="INFO",
    )
