from __future__ import annotations

from pathlib import Path

import pytest

_DIRECTORY_MARKERS = ("unit", "integration", "end2end")


def _marker_for(path: Path, tests_root: Path) -> str | None:
    try:
        relative = path.resolve().relative_to(tests_root)
    except ValueError:
        return None
    top_level = relative.parts[0] if relative.parts else None
    return top_level if top_level in _DIRECTORY_MARKERS else None


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    tests_root = (Path(config.rootpath) / "tests").resolve()
    for item in items:
        marker = _marker_for(Path(str(item.path)), tests_root)
        if marker is not None:
            item.add_marker(getattr(pytest.mark, marker))
