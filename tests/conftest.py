"""Pytest configuration and fixtures for TypeGraph CLI tests."""

import itertools
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from typegraph_cli.ingest import load_catalog
from typegraph_cli.models import TypeRecord
from typegraph_cli.storage import CatalogStore, InMemoryCatalog, ProjectManager


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_catalog_path() -> Path:
    """Get path to the sample JSON catalog."""
    return Path(__file__).parent / "fixtures" / "sample_catalog.json"


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch) -> Path:
    """Point every module that caches a home-directory path at *temp_dir*."""
    memory_dir = temp_dir / "memory"
    state_file = temp_dir / "state.json"

    # storage/config_manager bind these at import time
    monkeypatch.setattr("typegraph_cli.config.BASE_DIR", temp_dir)
    monkeypatch.setattr("typegraph_cli.config.MEMORY_DIR", memory_dir)
    monkeypatch.setattr("typegraph_cli.config.STATE_FILE", state_file)
    monkeypatch.setattr("typegraph_cli.storage.MEMORY_DIR", memory_dir)
    monkeypatch.setattr("typegraph_cli.storage.STATE_FILE", state_file)
    monkeypatch.setattr("typegraph_cli.config_manager.CONFIG_FILE", temp_dir / "config.toml")
    return temp_dir


@pytest.fixture
def temp_project_manager(temp_home: Path) -> ProjectManager:
    """Create a ProjectManager with temporary storage."""
    return ProjectManager()


@pytest.fixture
def temp_catalog_store(temp_dir: Path) -> Generator[CatalogStore, None, None]:
    """Create an empty CatalogStore with temporary storage."""
    project_dir = temp_dir / "test_catalog"
    project_dir.mkdir(parents=True, exist_ok=True)
    store = CatalogStore(project_dir)
    yield store
    store.close()


@pytest.fixture
def sample_catalog(sample_catalog_path: Path) -> InMemoryCatalog:
    """The fixture catalog loaded into memory."""
    result = load_catalog(sample_catalog_path)
    return InMemoryCatalog(result.types, result.members)


@pytest.fixture
def make_record() -> Callable[..., TypeRecord]:
    """Factory for TypeRecords with increasing catalog indexes."""
    counter = itertools.count()

    def _make(
        name: str,
        namespace: str = "Game",
        kind: str = "class",
        base=None,
        interfaces=(),
        generic_parameters=(),
        constraints=(),
    ) -> TypeRecord:
        return TypeRecord(
            name=name,
            namespace=namespace,
            kind=kind,
            base_type=base,
            interfaces=tuple(interfaces),
            generic_parameters=tuple(generic_parameters),
            constraints=tuple(constraints),
            catalog_index=next(counter),
        )

    return _make
