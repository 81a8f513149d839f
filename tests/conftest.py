from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path
from typing import Iterator, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from treestream import templates
from treestream.options import Options, opts_scope


@pytest.fixture(autouse=True)
def isolated_opts() -> Iterator[Options]:
    """Every test starts from empty options and leaves none behind."""
    with opts_scope(Options()) as opts:
        yield opts


@pytest.fixture(autouse=True)
def fresh_templates() -> Iterator[None]:
    """Compiled templates are shared nodes, so tests must not see each other's."""
    templates._memo.clear()
    yield
    templates._memo.clear()


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Parametrized tables must not produce clashing case ids."""
    del session, config

    counts = Counter(item.nodeid for item in items)
    duplicates = sorted(nodeid for nodeid, n in counts.items() if n > 1)
    if duplicates:
        lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
        raise pytest.UsageError(f"duplicate test ids:\n{lines}")
