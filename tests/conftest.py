from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a throwaway frontend project rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_perflens_logger():
    """CLI runs detach the perflens logger from root; reattach it so caplog sees records."""
    yield
    logger = logging.getLogger("perflens")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _isolated_perflens_home(tmp_path: Path, monkeypatch) -> Path:
    """Keep saved API keys out of the real home directory."""
    home = tmp_path / "perflens-home"
    monkeypatch.setenv("PERFLENS_HOME", str(home))
    return home
