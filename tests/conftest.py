import pytest
from pathlib import Path

CASES_DIR = Path(__file__).parent / "cases"

@pytest.fixture
def cases_dir() -> Path:
    """Directory holding the .fml fixture templates."""
    return CASES_DIR
