from __future__ import annotations
import shutil
from pathlib import Path

import pytest

from searchindex import Engine
from searchindex.DB.memory_store import MemorySource

DATA = Path(__file__).parent / "data"

MANIFEST = """\
var indexSectionsWithContent =
{
  0: "_abcdefghijklmnopqrstuvwxyz~",
  1: "abcdefghijklmnopqrstuvwxyz",
  2: "_abcdefghijklmnopqrstuvwz~"
};

var indexSectionNames =
{
  0: "all",
  1: "classes",
  2: "functions"
};

var indexSectionLabels =
{
  0: "All",
  1: "Classes",
  2: "Functions"
};
"""


@pytest.fixture(scope="session")
def functions_4() -> str:
    """The doxygen shard holding every function name that starts with "d"."""
    return (DATA / "functions_4.js").read_text(encoding="utf-8")


@pytest.fixture
def search_dir(tmp_path: Path) -> Path:
    root = tmp_path / "search"; root.mkdir()
    shutil.copy(DATA / "functions_4.js", root / "functions_4.js")
    return root


@pytest.fixture
def engine(functions_4: str):
    eng = Engine(MemorySource({"functions_4": functions_4}), index_name="functions")
    try:
        yield eng
    finally:
        eng.shutdown()


@pytest.fixture
def manifest_text() -> str:
    return MANIFEST
