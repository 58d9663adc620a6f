"""
Test fixtures for the stratmap test suite.

Provides:
- Temporary directory fixtures (isolated from the working .stratmap/)
- Mock data builders for creating test items
- Store/engine fixtures wired together the way StratmapCore wires them
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Generator, Optional

import pytest

from stratmap.constants import reset_config_manager
from stratmap.logging_config import LOGGER_NAME
from stratmap.managers.item_store import InMemoryItemStore
from stratmap.managers.propagation import PropagationEngine
from stratmap.models import Item, Timeframe

# Year every engine fixture is pinned to
REFERENCE_YEAR = 2025

ORG_ID = "org-test"


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path) -> Generator[None, None, None]:
    """Keep tests away from any real .stratmap/ and reset global state."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STRATMAP_LOG_LEVEL", raising=False)
    monkeypatch.delenv("STRATMAP_ORG", raising=False)
    monkeypatch.delenv("STRATMAP_DATA_DIR", raising=False)
    reset_config_manager()
    yield
    reset_config_manager()
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test isolation."""
    temp_path = Path(tempfile.mkdtemp(prefix="stratmap_test_"))
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def data_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary .stratmap/ directory.

    Returns the path to the .stratmap/ directory.
    """
    data_path = temp_dir / ".stratmap"
    data_path.mkdir(parents=True)
    yield data_path


# =============================================================================
# Mock Data Builders
# =============================================================================


class MockDataBuilder:
    """Helper class for building mock items for testing."""

    @staticmethod
    def create_yearly(
        text: str = "Grow revenue",
        year_index: Optional[int] = 0,
        category_index: int = 0,
        status: str = "neutral",
        organization_id: str = ORG_ID,
    ) -> Item:
        """Create a root yearly Item (not yet stored)."""
        return Item(
            organization_id=organization_id,
            timeframe=Timeframe.YEARLY,
            category_index=category_index,
            text=text,
            status=status,
            year_index=year_index,
        )

    @staticmethod
    def create_monthly(
        text: str = "Close Q4 deals",
        month_col_index: Optional[int] = 2025 * 12 + 11,
        category_index: int = 0,
        organization_id: str = ORG_ID,
    ) -> Item:
        """Create a root monthly Item (not yet stored)."""
        return Item(
            organization_id=organization_id,
            timeframe=Timeframe.MONTHLY,
            category_index=category_index,
            text=text,
            month_col_index=month_col_index,
        )

    @staticmethod
    def create_weekly(
        text: str = "Ship release",
        week_number: Optional[int] = 10,
        category_index: int = 0,
        organization_id: str = ORG_ID,
    ) -> Item:
        """Create a root weekly Item (not yet stored)."""
        return Item(
            organization_id=organization_id,
            timeframe=Timeframe.WEEKLY,
            category_index=category_index,
            text=text,
            week_number=week_number,
        )

    @staticmethod
    def create_daily(
        text: str = "Demo day",
        daily_date_key: Optional[int] = 20250309,
        category_index: int = 0,
        organization_id: str = ORG_ID,
    ) -> Item:
        """Create a root daily Item (not yet stored)."""
        return Item(
            organization_id=organization_id,
            timeframe=Timeframe.DAILY,
            category_index=category_index,
            text=text,
            daily_date_key=daily_date_key,
        )


@pytest.fixture
def mock_data() -> MockDataBuilder:
    """Provide mock data builder for test item creation."""
    return MockDataBuilder()


# =============================================================================
# Store / Engine Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryItemStore:
    """An empty in-memory item store."""
    return InMemoryItemStore()


@pytest.fixture
def engine(store: InMemoryItemStore) -> PropagationEngine:
    """A propagation engine attached to the store, pinned to REFERENCE_YEAR."""
    propagation = PropagationEngine(store, reference_year=REFERENCE_YEAR)
    propagation.attach()
    return propagation


@pytest.fixture
def chain_of(store: InMemoryItemStore):
    """Return a helper that follows parent links down from an id, root first."""

    def _chain_of(root_id: str) -> list:
        chain = [store.find_by_id(root_id)]
        while True:
            child = store.find_child(chain[-1].id)
            if child is None:
                return chain
            chain.append(child)

    return _chain_of
