"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
import pytest

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from oceanmd.autocorrect import TermCorrector, default_corrector
from oceanmd.patterns import PatternEngine
from tests.fixtures import BOOK_PAGES, FakeFetcher


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark as integration test")
    config.addinivalue_line("markers", "network: mark as requiring network access")


# ============================================================================
# Base Fixtures
# ============================================================================


@pytest.fixture
def engine():
    """Create a pattern engine with the default placeholders."""
    return PatternEngine()


@pytest.fixture
def word_list():
    """A small known-word list so tests never load the spell checker."""
    return {"example", "together", "beginning", "chapter", "world"}


@pytest.fixture
def corrector():
    """The bundled Bahá'í term corrector."""
    return default_corrector()


@pytest.fixture
def empty_corrector():
    """A corrector that knows no terms."""
    return TermCorrector([])


# ============================================================================
# Source Fixtures
# ============================================================================


@pytest.fixture
def fake_fetcher():
    """A fetcher serving the sample book site from memory."""
    return FakeFetcher(BOOK_PAGES)


@pytest.fixture
def text_file(tmp_path):
    """Write a text source named ``Author, Title.txt`` and return its path."""
    def _write(content: str, name: str = "Jane Doe, My Book.txt") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write
