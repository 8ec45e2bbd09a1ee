"""Architecture enforcement tests for the metering package layout.

This module provides lightweight, repository-local invariants to ensure that
the inner ``crux_meter.base`` layer stays provider-agnostic and that provider
packages stay independent of the outer facade. It focuses on import
boundaries only and is designed to fail fast if a forbidden dependency is
introduced.

Rules validated here:
1) ``crux_meter/base`` must not import provider packages, the integrations
   package or the ``crux_meter.meter`` facade. Providers are reached through
   the factory's ``importlib`` mapping only.
2) ``crux_meter/base`` must not import ``crux_meter.config`` at module level;
   a lazy import inside a function is allowed.
3) Provider packages must not import ``crux_meter.meter`` or
   ``crux_meter.integrations``.

These tests parse source with ``ast`` to avoid import-time side effects, and
they emit clear failure messages for quick remediation.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

import pytest

REPO_ROOT = Path(__file__).resolve().parent.parent
PACKAGE_ROOT = REPO_ROOT / "crux_meter"
BASE_DIR = PACKAGE_ROOT / "base"

PROVIDER_PACKAGES = (
    "openai",
    "anthropic",
    "google",
    "ollama",
    "groq",
    "mistral",
    "xai",
    "cohere",
    "openrouter",
    "elevenlabs",
    "replicate",
    "falai",
)


def _iter_python_files(root: Path) -> Iterable[Path]:
    """Yield all Python source files under ``root``, skipping ``__pycache__``."""

    for path in root.rglob("*.py"):
        if "__pycache__" in path.parts:
            continue
        yield path


def _module_name(path: Path) -> str:
    parts = list(path.relative_to(REPO_ROOT).with_suffix("").parts)
    if parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def _resolve(path: Path, node: ast.ImportFrom) -> str:
    """Return the absolute dotted module an ``ImportFrom`` node refers to."""

    if not node.level:
        return node.module or ""
    package = _module_name(path).split(".")
    if path.name != "__init__.py":
        package = package[:-1]
    base = package[: len(package) - (node.level - 1)]
    return ".".join(base + ([node.module] if node.module else []))


def _imports(path: Path) -> Iterator[Tuple[str, bool]]:
    """Yield ``(module, top_level)`` for every import statement in ``path``."""

    tree = ast.parse(path.read_text(encoding="utf-8", errors="replace"), filename=str(path))
    top_level = {id(node) for node in tree.body}
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name, id(node) in top_level
        elif isinstance(node, ast.ImportFrom):
            target = _resolve(path, node)
            yield target, id(node) in top_level
            # ``from crux_meter import openai`` names the package in the alias
            for alias in node.names:
                yield f"{target}.{alias.name}", id(node) in top_level


def _hits(module: str, forbidden: Iterable[str]) -> List[str]:
    return [f for f in forbidden if module == f or module.startswith(f + ".")]


def _require_dir(path: Path) -> None:
    if not path.is_dir():
        pytest.skip(f"{path} not found; skipping boundary check")


def test_base_does_not_import_providers_or_outer_layers() -> None:
    _require_dir(BASE_DIR)
    forbidden = [f"crux_meter.{p}" for p in PROVIDER_PACKAGES]
    forbidden += ["crux_meter.meter", "crux_meter.integrations"]

    offenders: List[str] = []
    for py in _iter_python_files(BASE_DIR):
        for module, _ in _imports(py):
            offenders.extend(f"{py}: imports '{m}'" for m in _hits(module, forbidden))

    if offenders:
        pytest.fail("Base layer must stay provider-agnostic.\n" + "\n".join(sorted(set(offenders))))


def test_base_imports_config_lazily_only() -> None:
    _require_dir(BASE_DIR)
    offenders: List[str] = []
    for py in _iter_python_files(BASE_DIR):
        for module, top_level in _imports(py):
            if top_level and _hits(module, ["crux_meter.config"]):
                offenders.append(f"{py}: imports '{module}' at module level")

    if offenders:
        pytest.fail("Base layer must not read configuration at import time.\n" + "\n".join(sorted(set(offenders))))


def test_providers_do_not_import_outer_layers() -> None:
    _require_dir(PACKAGE_ROOT)
    forbidden = ["crux_meter.meter", "crux_meter.integrations"]

    offenders: List[str] = []
    for name in PROVIDER_PACKAGES:
        root = PACKAGE_ROOT / name
        if not root.is_dir():
            continue
        for py in _iter_python_files(root):
            for module, _ in _imports(py):
                offenders.extend(f"{py}: imports '{m}'" for m in _hits(module, forbidden))

    if offenders:
        pytest.fail("Provider packages must not import the facade or integrations.\n" + "\n".join(sorted(set(offenders))))


def test_every_provider_package_is_registered_with_the_factory() -> None:
    from crux_meter.base.factory import ProviderFactory

    on_disk = {p.parent.name for p in PACKAGE_ROOT.glob("*/provider.py")}
    assert on_disk == set(ProviderFactory.supported())  # nosec B101 - asserts are appropriate in unit tests
    assert on_disk == set(PROVIDER_PACKAGES)  # nosec B101
