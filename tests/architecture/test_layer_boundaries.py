"""
Layer boundary contract.

1. billing_kernel/** may NOT import any other billing package.  The
   kernel never depends upward.

2. billing_engines/** may NOT import billing_config or billing_services.
   Engines receive configuration and ``now`` as arguments.

3. Engines never read the wall clock: no ``datetime.now``, ``date.today``
   or ``time.time`` calls in billing_engines/**.

These tests read source code via AST -- they cannot break anything.
"""

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _python_files(package: str) -> list[Path]:
    """Return all .py files of a top-level package."""
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _parse(filepath: Path) -> ast.AST | None:
    try:
        return ast.parse(filepath.read_text(), filename=str(filepath))
    except (SyntaxError, UnicodeDecodeError):
        return None


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    tree = _parse(filepath)
    if tree is None:
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    found.append(
                        f"  {filepath.relative_to(REPO_ROOT)}:{lineno} imports '{module}'"
                    )
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestKernelNoUpwardDependencies:
    """billing_kernel/** must not import the layers built on top of it."""

    FORBIDDEN_PREFIXES = ("billing_engines", "billing_config", "billing_services")

    def test_kernel_does_not_import_forbidden_packages(self):
        violations = _violations("billing_kernel", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "Kernel boundary violation -- billing_kernel/** must not import "
            "higher layers:\n" + "\n".join(violations)
        )


class TestEnginesStayPure:
    """billing_engines/** depends on the kernel only."""

    FORBIDDEN_PREFIXES = ("billing_config", "billing_services")

    def test_engines_do_not_import_config_or_services(self):
        violations = _violations("billing_engines", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "Engine boundary violation:\n" + "\n".join(violations)
        )

    def test_engines_never_read_wall_clock(self):
        forbidden_calls = {("datetime", "now"), ("date", "today"), ("datetime", "today")}
        violations: list[str] = []

        for filepath in _python_files("billing_engines"):
            tree = _parse(filepath)
            if tree is None:
                continue
            for node in ast.walk(tree):
                if (
                    isinstance(node, ast.Call)
                    and isinstance(node.func, ast.Attribute)
                    and isinstance(node.func.value, ast.Name)
                    and (node.func.value.id, node.func.attr) in forbidden_calls
                ):
                    violations.append(
                        f"  {filepath.relative_to(REPO_ROOT)}:{node.lineno}"
                    )

        assert not violations, (
            "Engines must receive 'now' as a parameter:\n" + "\n".join(violations)
        )
