from __future__ import annotations

import sys
import types
from pathlib import Path
from textwrap import dedent
from typing import Callable, Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


NESTED_SETUP_SOURCE = dedent(
    """\
    describe tests {
        before {
            one = 1
        }

        it one {
            assert one == 1
        }

        it zero {
            assert one - 1 == 0
        }

        describe nested {
            before {
                two = 2
            }

            it two {
                assert one + 1 == two
            }
        }
    }
    """
)


@pytest.fixture
def nested_setup_source() -> str:
    """The describe/before/it walkthrough: one outer before, one nested before."""
    return NESTED_SETUP_SOURCE


@pytest.fixture
def load_generated() -> Callable[[str], types.ModuleType]:
    """Compile generated Python into a throwaway module and return it."""

    def load(text: str) -> types.ModuleType:
        module = types.ModuleType("demonstrate_generated")
        exec(compile(text, "<generated>", "exec"), module.__dict__)
        return module

    return load


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Reject duplicate node IDs; table-driven cases must have unique ids."""
    del session
    del config

    seen: Dict[str, int] = {}
    for item in items:
        seen[item.nodeid] = seen.get(item.nodeid, 0) + 1

    duplicates = sorted(nodeid for nodeid, count in seen.items() if count > 1)
    if duplicates:
        lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
        raise pytest.UsageError(f"Duplicate pytest nodeids detected during collection:\n{lines}")
