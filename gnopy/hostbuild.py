# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Host build driver: `python -m gnopy.hostbuild --tags=gno FILE...`.

Runs as a separate process against generated files. For every file whose
`#gno:build` constraint is satisfied by `--tags`, it compiles the source and
checks that each absolute import resolves on the current `sys.path`. Relative
imports (generated package `__init__.py` files) are checked by compiling only.

Diagnostics are printed as `file:line:col: error: message`; the exit status is
1 when any file failed.
"""

from __future__ import annotations

import argparse
import ast
import importlib.util
import sys
from pathlib import Path

from gnopy.buildtags import BuildConstraintError, satisfied


def _split_tags(raw: str) -> list[str]:
	return [t for t in (s.strip() for s in raw.replace(",", " ").split()) if t]


def _absolute_imports(tree: ast.AST) -> list[tuple[str, int, int]]:
	out: list[tuple[str, int, int]] = []
	for node in ast.walk(tree):
		if isinstance(node, ast.Import):
			for alias in node.names:
				out.append((alias.name, node.lineno, node.col_offset))
		elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
			out.append((node.module, node.lineno, node.col_offset))
	out.sort(key=lambda t: (t[1], t[2]))
	return out


def _check_import(name: str) -> str | None:
	try:
		spec = importlib.util.find_spec(name)
	except (ImportError, ValueError) as err:
		return f"could not import {name}: {err}"
	except Exception as err:  # parent package raised while importing
		return f"could not import {name}: {type(err).__name__}: {err}"
	if spec is None:
		return f"could not import {name} (no module named {name!r})"
	return None


def build_file(path: Path, tags: list[str], *, verbose: bool = False) -> list[str]:
	"""Return diagnostics for one file; an unselected file yields none."""
	try:
		source = path.read_text(encoding="utf-8")
	except OSError as err:
		return [f"{path}:?:?: error: {err}"]
	try:
		if not satisfied(source, tags):
			if verbose:
				print(f"skip {path} (build constraints exclude it)", file=sys.stderr)
			return []
	except BuildConstraintError as err:
		return [f"{path}:?:?: error: {err}"]

	try:
		compile(source, str(path), "exec", dont_inherit=True)
		tree = ast.parse(source, filename=str(path))
	except SyntaxError as err:
		return [f"{path}:{err.lineno or '?'}:{err.offset or '?'}: error: {err.msg}"]

	diags: list[str] = []
	for name, line, col in _absolute_imports(tree):
		msg = _check_import(name)
		if msg is not None:
			diags.append(f"{path}:{line}:{col + 1}: error: {msg}")
	if verbose and not diags:
		print(str(path), file=sys.stderr)
	return diags


def main(argv: list[str] | None = None) -> int:
	ap = argparse.ArgumentParser(prog="gnopy.hostbuild", description="Compile generated gnopy files")
	ap.add_argument("files", nargs="+", type=Path, help="generated .py files")
	ap.add_argument("--tags", type=str, default="", help="comma-separated build tags to select files with")
	ap.add_argument("-v", "--verbose", action="store_true", help="print the files as they are built")
	args = ap.parse_args(argv)

	tags = _split_tags(args.tags)
	diags: list[str] = []
	for path in args.files:
		diags.extend(build_file(path, tags, verbose=args.verbose))
	for d in diags:
		print(d, file=sys.stderr)
	return 1 if diags else 0


if __name__ == "__main__":
	raise SystemExit(main())
