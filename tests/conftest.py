from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator

import pytest

from blueprint.generator import BlueprintGenerator, ExtractionOptions
from tests._fixtures.source_tree import SourceTreeBuilder

FIXTURES_PATH = Path(__file__).parent / "fixtures" / "php"


@pytest.fixture(autouse=True)
def _reset_blueprint_logger() -> Iterator[None]:
    """Undo CLI logging setup so records keep reaching caplog."""
    yield
    logger = logging.getLogger("blueprint")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTreeBuilder:
    """Provide a reusable PHP source tree rooted at the pytest tmp_path."""
    return SourceTreeBuilder(tmp_path)


@pytest.fixture
def fixtures_path() -> Path:
    return FIXTURES_PATH


@pytest.fixture
def extract_fixtures() -> Callable[..., Dict[str, dict]]:
    """Extract the shared PHP fixture tree into a plain mapping."""

    def _extract(
        namespace: str = "TestFixtures",
        public_only: bool = True,
        skip_internal: bool = True,
        short_docs: bool = False,
        compact_threshold: int = 0,
        exclude: tuple[str, ...] = (),
    ) -> Dict[str, dict]:
        options = ExtractionOptions(
            namespace=namespace,
            public_only=public_only,
            skip_internal=skip_internal,
            short_docs=short_docs,
            compact_threshold=compact_threshold,
            exclude=exclude,
        )
        return BlueprintGenerator(options).extract_from_directory(FIXTURES_PATH).to_dict()

    return _extract
