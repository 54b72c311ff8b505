#!/usr/bin/env python
"""Module layout rules for the roomwire tree.

Rules:
- one-class: at most one top-level non-dataclass class per roomwire module.
  Models, settings and errors are dataclasses and may share a module.
- local-imports: no imports inside function, method or class bodies in roomwire,
  so a missing library fails at import time rather than mid-connection.
- all-last: where a module defines `__all__`, it is one literal assignment and
  the last top-level statement (roomwire and tests).

Usage: python linting/layout.py [--root PATH] [--rule NAME ...]
"""

from __future__ import annotations

import ast
import sys
import argparse
from pathlib import Path
from collections.abc import Callable, Iterator

ROOT = Path(__file__).resolve().parents[1]
PACKAGE = "roomwire"

Check = Callable[[ast.Module, str], list[str]]


def _iter_modules(root: Path, dirs: tuple[str, ...]) -> Iterator[tuple[ast.Module, str]]:
    for name in dirs:
        base = root / name
        if not base.is_dir():
            continue
        for path in sorted(base.rglob("*.py")):
            if "__pycache__" in path.parts:
                continue
            try:
                tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
            except (OSError, UnicodeDecodeError, SyntaxError):
                continue
            yield tree, str(path.relative_to(root))


# ----------------------------------------------------------------------
# one-class
# ----------------------------------------------------------------------


def _is_dataclass(node: ast.ClassDef) -> bool:
    for decorator in node.decorator_list:
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        if isinstance(target, ast.Name) and target.id == "dataclass":
            return True
        if isinstance(target, ast.Attribute) and target.attr == "dataclass":
            return True
    return False


def check_one_class(tree: ast.Module, rel: str) -> list[str]:
    names = [node.name for node in tree.body if isinstance(node, ast.ClassDef) and not _is_dataclass(node)]
    if len(names) <= 1:
        return []
    return [f"  {rel}: {len(names)} classes ({', '.join(names)})"]


# ----------------------------------------------------------------------
# local-imports
# ----------------------------------------------------------------------

_SCOPES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)


def check_local_imports(tree: ast.Module, rel: str) -> list[str]:
    found: list[str] = []
    for scope in ast.walk(tree):
        if not isinstance(scope, _SCOPES):
            continue
        for node in ast.walk(scope):
            if isinstance(node, (ast.Import, ast.ImportFrom)):
                found.append(f"  {rel}:{node.lineno} local import")
    # nested scopes are walked once per enclosing scope
    return sorted(set(found))


# ----------------------------------------------------------------------
# all-last
# ----------------------------------------------------------------------


def _touches_all(node: ast.stmt) -> bool:
    return any(isinstance(sub, ast.Name) and sub.id == "__all__" for sub in ast.walk(node))


def _is_all_literal(node: ast.stmt) -> bool:
    if isinstance(node, ast.Assign):
        target_ok = len(node.targets) == 1 and isinstance(node.targets[0], ast.Name)
        target_ok = target_ok and node.targets[0].id == "__all__"
        value = node.value
    elif isinstance(node, ast.AnnAssign):
        target_ok = isinstance(node.target, ast.Name) and node.target.id == "__all__"
        value = node.value
    else:
        return False
    return target_ok and isinstance(value, (ast.List, ast.Tuple)) and not _touches_all(value)


def check_all_last(tree: ast.Module, rel: str) -> list[str]:
    touching = [(idx, node) for idx, node in enumerate(tree.body) if _touches_all(node)]
    if not touching:
        return []
    if len(touching) > 1:
        return [f"  {rel}:{node.lineno} `__all__` set or mutated more than once" for _, node in touching]

    idx, node = touching[0]
    if not _is_all_literal(node):
        return [f"  {rel}:{node.lineno} `__all__` must be a single list literal"]
    return [f"  {rel}:{later.lineno} statement after `__all__`" for later in tree.body[idx + 1 :]]


RULES: dict[str, tuple[Check, tuple[str, ...]]] = {
    "one-class": (check_one_class, (PACKAGE,)),
    "local-imports": (check_local_imports, (PACKAGE,)),
    "all-last": (check_all_last, (PACKAGE, "tests")),
}


def run(root: Path, rules: list[str]) -> dict[str, list[str]]:
    report: dict[str, list[str]] = {}
    for rule in rules:
        check, dirs = RULES[rule]
        violations: list[str] = []
        for tree, rel in _iter_modules(root, dirs):
            violations.extend(check(tree, rel))
        if violations:
            report[rule] = violations
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check roomwire module layout rules.")
    parser.add_argument("--root", default=str(ROOT), help="Project root (default: repo root)")
    parser.add_argument("--rule", action="append", choices=sorted(RULES), help="Rule to run (repeatable; default: all)")
    args = parser.parse_args(argv)

    report = run(Path(args.root).resolve(), args.rule or list(RULES))
    for rule, violations in report.items():
        print(f"{rule} violations:", file=sys.stderr)
        for violation in violations:
            print(violation, file=sys.stderr)
    return 1 if report else 0


if __name__ == "__main__":
    raise SystemExit(main())
