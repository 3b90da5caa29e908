# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Host source generation.

Generated files start with a generated-code marker and, when a tag expression
is given, a build marker that the host build driver evaluates:

	# Code generated by gnopy. DO NOT EDIT.

	#gno:build gno && test

The generated filename and its tags are a pure function of the dialect file's
base name and kind. Test kinds get a leading dot so they never take part in
imports of the package.
"""

from __future__ import annotations

import ast
from pathlib import Path

from gnopy.buildtags import BUILD_MARKER_PREFIX
from gnopy.errors import CodeGenError
from gnopy.precompile.parse import GNO_EXT, ModuleKind

GENERATED_MARKER = "# Code generated by gnopy. DO NOT EDIT."
# Tag value that suppresses the whole header.
NO_HEADER = "no_header"

GEN_SUFFIX = "_gno_gen.py"
GEN_TEST_SUFFIX = "_gno_gen_test.py"
PACKAGE_INIT = "__init__.py"

BUILD_TAG = "gno"
TEST_TAGS = "gno && test"
FILETEST_TAGS = "gno && filetest"


def precompile_filename_and_tags(gno_file_path: str) -> tuple[str, str]:
	"""Return (generated filename, build tags) for a dialect file path."""
	name = Path(gno_file_path).name
	base = name[: -len(GNO_EXT)] if name.endswith(GNO_EXT) else name
	kind = ModuleKind.from_filename(name)
	if kind is ModuleKind.FILETEST:
		return "." + base + GEN_SUFFIX, FILETEST_TAGS
	if kind is ModuleKind.TEST:
		return "." + base + GEN_TEST_SUFFIX, TEST_TAGS
	return base + GEN_SUFFIX, BUILD_TAG


def render_header(tags: str) -> str:
	if tags == NO_HEADER:
		return ""
	header = GENERATED_MARKER + "\n\n"
	if tags:
		header += BUILD_MARKER_PREFIX + tags + "\n\n"
	return header


def render_module(tree: ast.Module, tags: str, filename: str) -> str:
	try:
		body = ast.unparse(tree)
	except (AttributeError, TypeError, ValueError, RecursionError) as err:
		raise CodeGenError(filename=filename, detail=f"{type(err).__name__}: {err}") from err
	if body and not body.endswith("\n"):
		body += "\n"
	return render_header(tags) + body


def render_package_init(module_filenames: list[str]) -> str:
	"""
	`__init__.py` re-exporting every implementation module of a package.

	Underscore-prefixed names stay private to their module, like unexported
	identifiers.
	"""
	lines = [render_header(BUILD_TAG).rstrip("\n"), ""]
	for fname in sorted(module_filenames):
		lines.append(f"from .{fname[: -len('.py')]} import *  # noqa: F401,F403")
	return "\n".join(lines) + "\n"


def is_generated_artifact(path: Path) -> bool:
	name = path.name
	if name.endswith(GEN_SUFFIX) or name.endswith(GEN_TEST_SUFFIX):
		return True
	if name == PACKAGE_INIT and path.is_file():
		with path.open(encoding="utf-8", errors="replace") as fh:
			return fh.readline().rstrip("\n") == GENERATED_MARKER
	return False


def is_test_artifact(name: str) -> bool:
	return name.startswith(".") or name.endswith(GEN_TEST_SUFFIX) or name.endswith("_filetest" + GEN_SUFFIX)


__all__ = [
	"BUILD_MARKER_PREFIX",
	"BUILD_TAG",
	"GENERATED_MARKER",
	"NO_HEADER",
	"PACKAGE_INIT",
	"is_generated_artifact",
	"is_test_artifact",
	"precompile_filename_and_tags",
	"render_header",
	"render_module",
	"render_package_init",
]
