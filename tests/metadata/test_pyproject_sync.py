from __future__ import annotations

from pathlib import Path
import tomllib

import promptcanon
from promptcanon.core.adapters.registry import supported_providers


REPO_ROOT = Path(__file__).resolve().parents[2]
README_PATH = REPO_ROOT / "README.md"
PYPROJECT_PATH = REPO_ROOT / "pyproject.toml"
ABOUT_PATH = REPO_ROOT / "docs" / "about.md"

ABOUT_OPENING = "promptcanon is the normalization layer between LLM client libraries and tools"


def load_pyproject() -> dict:
    with PYPROJECT_PATH.open("rb") as handle:
        return tomllib.load(handle)


def test_readme_and_pyproject_descriptions_are_in_sync() -> None:
    pyproject = load_pyproject()
    description = pyproject["project"]["description"]
    readme_text = README_PATH.read_text(encoding="utf-8")

    assert description in readme_text, "README must include the project description from pyproject.toml"


def test_package_version_matches_pyproject() -> None:
    assert promptcanon.__version__ == load_pyproject()["project"]["version"]


def test_readme_lists_every_provider_family() -> None:
    readme_text = README_PATH.read_text(encoding="utf-8")

    for provider in supported_providers():
        assert f"| `{provider}`" in readme_text


def test_docs_about_contains_the_overview() -> None:
    about_text = ABOUT_PATH.read_text(encoding="utf-8")

    assert ABOUT_OPENING in about_text
