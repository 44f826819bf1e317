import sys
from pathlib import Path

import pytest

# Ensure `import resource_view` works when running `pytest` from repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from resource_view.views.registry import reset_view_registry  # noqa: E402

WIDGET_ID = "11111111-1111-1111-1111-111111111111"
GADGET_ID = "22222222-2222-2222-2222-222222222222"
OWNER_ID = "33333333-3333-3333-3333-333333333333"


@pytest.fixture(autouse=True)
def fresh_global_registry():
    """Every test starts with an empty process-wide registry."""
    reset_view_registry()
    yield
    reset_view_registry()
