# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Build constraint parsing and evaluation.

A generated file carries at most one `#gno:build <expr>` line in its leading
comment block. The host build driver only compiles files whose expression is
satisfied by the selected tags; files without a constraint are always built.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Iterable

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

BUILD_MARKER_PREFIX = "#gno:build "

_GRAMMAR_PATH = Path(__file__).with_name("build_tags.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text(encoding="utf-8")

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	maybe_placeholders=False,
)


class BuildConstraintError(ValueError):
	"""Malformed build constraint expression."""

	def __init__(self, expr: str, detail: str) -> None:
		super().__init__(f"invalid build constraint {expr!r}: {detail}")
		self.expr = expr


@lru_cache(maxsize=256)
def parse_constraint(expr: str) -> Tree:
	try:
		return _PARSER.parse(expr)
	except UnexpectedInput as err:
		raise BuildConstraintError(expr, (str(err).strip().splitlines() or [type(err).__name__])[0]) from err


def _eval(node: Tree | Token, tags: frozenset[str]) -> bool:
	if isinstance(node, Token):
		return str(node) in tags
	kind = node.data
	if kind == "tag":
		return str(node.children[0]) in tags
	if kind == "negation":
		return not _eval(node.children[0], tags)
	if kind == "and_expr":
		return all(_eval(c, tags) for c in node.children)
	if kind == "or_expr":
		return any(_eval(c, tags) for c in node.children)
	raise BuildConstraintError(str(node), f"unexpected node {kind!r}")


def eval_constraint(expr: str, tags: Iterable[str]) -> bool:
	return _eval(parse_constraint(expr), frozenset(tags))


def find_build_constraint(source: str) -> str | None:
	"""Return the constraint expression of the leading comment block, if any."""
	for line in source.splitlines():
		stripped = line.strip()
		if not stripped:
			continue
		if not stripped.startswith("#"):
			break
		if stripped.startswith(BUILD_MARKER_PREFIX):
			return stripped[len(BUILD_MARKER_PREFIX):].strip()
	return None


def satisfied(source: str, tags: Iterable[str]) -> bool:
	expr = find_build_constraint(source)
	if expr is None:
		return True
	return eval_constraint(expr, tags)


__all__ = [
	"BuildConstraintError",
	"eval_constraint",
	"find_build_constraint",
	"parse_constraint",
	"satisfied",
]
