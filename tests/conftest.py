from __future__ import annotations

import os
import shutil
from collections.abc import Generator
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest

os.environ.setdefault("HOSPITAL_FLOW_DATA_DIR", str(Path("pytest_artifacts", "data").resolve()))


class MemoryStore:
    """In-process stand-in for the snapshot store."""

    def __init__(self) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = {}
        self.writes: list[str] = []

    def read(self, key: str) -> list[dict[str, Any]] | None:
        items = self.collections.get(key)
        return None if items is None else [dict(item) for item in items]

    def write(self, key: str, items: list[dict[str, Any]]) -> None:
        self.collections[key] = [dict(item) for item in items]
        self.writes.append(key)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def tmp_path() -> Generator[Path, None, None]:
    base = Path("pytest_artifacts")
    base.mkdir(parents=True, exist_ok=True)
    path = base / uuid4().hex
    path.mkdir(parents=True, exist_ok=True)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
