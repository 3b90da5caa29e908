# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Import whitelist and rewrite policy.

Two passes over every import of a parsed dialect module:

1. whitelist check (implementation modules only). Violations are accumulated,
   never short-circuited.
2. rewrite. Rules match disjoint prefixes (or one exact path), so their order
   does not matter. The rewritten module is a new tree; the parsed input is
   left untouched.

A path "matches" a prefix rule when it is the rule's root package itself or lies
beneath it: `gno.land.p.demo` and `gno.land.p.demo.avl` both match
`gno.land.p.demo.`.
"""

from __future__ import annotations

import ast
import copy
import enum
from collections import Counter
from dataclasses import dataclass

from gnopy.errors import AggregateError, ImportPolicyViolation, ImportRewriteFailure

GNO_REALM_PKGS_PREFIX_BEFORE = "gno.land.r."
GNO_REALM_PKGS_PREFIX_AFTER = "examples.gno.land.r."
GNO_PACKAGE_PREFIX_BEFORE = "gno.land.p.demo."
GNO_PACKAGE_PREFIX_AFTER = "examples.gno.land.p.demo."
GNO_STD_PKG_BEFORE = "std"
GNO_STD_PKG_AFTER = "gnopy.stdlibs.stdshim"

# Top-level host package every rewritten realm/library import lives under.
IMPORT_ROOT = "examples"

STDLIB_WHITELIST = frozenset(
	{
		"__future__",
		"base64",
		"binascii",
		"bisect",
		"collections",
		"collections.abc",
		"dataclasses",
		"datetime",
		"decimal",
		"enum",
		"fractions",
		"functools",
		"gzip",
		"hashlib",
		"heapq",
		"io",
		"itertools",
		"json",
		"math",
		"operator",
		"random",
		"re",
		"string",
		"struct",
		"textwrap",
		"time",
		"typing",
		"unicodedata",
		"xml.etree.ElementTree",
		# gno
		"std",
	}
)

IMPORT_PREFIX_WHITELIST = ("gnopy._test.",)


class ImportClass(enum.Enum):
	UNCHANGED = "unchanged"
	REWRITTEN = "rewritten"
	REJECTED = "rejected"


@dataclass(frozen=True)
class ImportEdge:
	"""
	One import target as written (`source`) and after policy (`target`).

	For `from m import a, b` there is one edge for `m`; `names` keeps `a, b` so
	the resolver can also find sub-packages imported that way.
	"""

	source: str
	target: str
	classification: ImportClass
	names: tuple[str, ...] = ()
	line: int | None = None


@dataclass(frozen=True)
class PolicyResult:
	tree: ast.Module
	imports: tuple[ImportEdge, ...]
	error: AggregateError | None


def has_prefix(path: str, prefix: str) -> bool:
	return (path + ".").startswith(prefix)


def _swap_prefix(path: str, before: str, after: str) -> str:
	return (after + (path + ".")[len(before):])[:-1]


def is_whitelisted(path: str) -> bool:
	if has_prefix(path, GNO_REALM_PKGS_PREFIX_BEFORE):
		return True
	if has_prefix(path, GNO_PACKAGE_PREFIX_BEFORE):
		return True
	if path in STDLIB_WHITELIST:
		return True
	return any(has_prefix(path, p) for p in IMPORT_PREFIX_WHITELIST)


def rewrite_target(path: str) -> str | None:
	"""Return the rewritten import path, or None when no rule applies."""
	if path == GNO_STD_PKG_BEFORE:
		return GNO_STD_PKG_AFTER
	if has_prefix(path, GNO_PACKAGE_PREFIX_BEFORE):
		return _swap_prefix(path, GNO_PACKAGE_PREFIX_BEFORE, GNO_PACKAGE_PREFIX_AFTER)
	if has_prefix(path, GNO_REALM_PKGS_PREFIX_BEFORE):
		return _swap_prefix(path, GNO_REALM_PKGS_PREFIX_BEFORE, GNO_REALM_PKGS_PREFIX_AFTER)
	return None


def _import_source(node: ast.ImportFrom) -> str:
	return "." * node.level + (node.module or "")


def _import_nodes(tree: ast.AST) -> list[ast.Import | ast.ImportFrom]:
	nodes = [n for n in ast.walk(tree) if isinstance(n, (ast.Import, ast.ImportFrom))]
	nodes.sort(key=lambda n: (n.lineno, n.col_offset))
	return nodes


def _raw_imports(tree: ast.AST) -> list[tuple[str, tuple[str, ...], int]]:
	out: list[tuple[str, tuple[str, ...], int]] = []
	for node in _import_nodes(tree):
		if isinstance(node, ast.Import):
			for alias in node.names:
				out.append((alias.name, (), node.lineno))
		else:
			out.append((_import_source(node), tuple(a.name for a in node.names), node.lineno))
	return out


def _binding_parent(before: str, after: str) -> str | None:
	"""
	Module that exposes the rewritten counterpart of `before`'s top package.

	`import gno.land.p.demo.avl` binds `gno`; after the rewrite the same object
	is `examples.gno`, so the binding is re-created with `from examples import gno`.
	"""
	if not after.endswith("." + before):
		return None
	return after[: -len(before) - 1]


class _ImportRewriter(ast.NodeTransformer):
	def __init__(self, plan: dict[str, str]) -> None:
		self.plan = plan
		self.applied: Counter[str] = Counter()

	def visit_Import(self, node: ast.Import) -> ast.AST | list[ast.AST]:
		names: list[ast.alias] = []
		rebinds: list[ast.stmt] = []
		for alias in node.names:
			target = self.plan.get(alias.name)
			if target is None:
				names.append(ast.alias(name=alias.name, asname=alias.asname))
				continue
			if alias.asname is not None:
				names.append(ast.alias(name=target, asname=alias.asname))
			elif "." not in alias.name:
				names.append(ast.alias(name=target, asname=alias.name))
			else:
				parent = _binding_parent(alias.name, target)
				if parent is None:
					names.append(ast.alias(name=alias.name, asname=alias.asname))
					continue
				names.append(ast.alias(name=target, asname=None))
				top = alias.name.split(".", 1)[0]
				rebinds.append(ast.ImportFrom(module=parent, names=[ast.alias(name=top, asname=None)], level=0))
			self.applied[alias.name] += 1
		out: list[ast.AST] = [ast.copy_location(ast.Import(names=names), node)]
		out.extend(ast.copy_location(stmt, node) for stmt in rebinds)
		return out if len(out) > 1 else out[0]

	def visit_ImportFrom(self, node: ast.ImportFrom) -> ast.AST:
		if node.level or node.module is None:
			return node
		target = self.plan.get(node.module)
		if target is None:
			return node
		self.applied[node.module] += 1
		names = [ast.alias(name=a.name, asname=a.asname) for a in node.names]
		return ast.copy_location(ast.ImportFrom(module=target, names=names, level=0), node)


def apply_import_policy(tree: ast.Module, filename: str, check_whitelist: bool) -> PolicyResult:
	errs: list[Exception] = []
	raw = _raw_imports(tree)

	rejected: set[str] = set()
	if check_whitelist:
		for path, _names, line in raw:
			if path in rejected or is_whitelisted(path):
				continue
			rejected.add(path)
			errs.append(ImportPolicyViolation(import_path=path, filename=filename, line=line))

	plan: dict[str, str] = {}
	for path, _names, _line in raw:
		target = rewrite_target(path)
		if target is not None:
			plan[path] = target

	rewriter = _ImportRewriter(plan)
	new_tree = rewriter.visit(copy.deepcopy(tree))
	ast.fix_missing_locations(new_tree)
	for before, after in plan.items():
		if rewriter.applied[before] == 0:
			errs.append(ImportRewriteFailure(before=before, after=after))

	edges: list[ImportEdge] = []
	for path, names, line in raw:
		if path in rejected:
			cls = ImportClass.REJECTED
		elif path in plan and rewriter.applied[path]:
			cls = ImportClass.REWRITTEN
		else:
			cls = ImportClass.UNCHANGED
		target = plan[path] if cls is ImportClass.REWRITTEN else path
		edges.append(ImportEdge(source=path, target=target, classification=cls, names=names, line=line))

	return PolicyResult(
		tree=new_tree,
		imports=tuple(edges),
		error=AggregateError.collect(f"{filename}: import policy", errs),
	)


__all__ = [
	"GNO_PACKAGE_PREFIX_AFTER",
	"GNO_PACKAGE_PREFIX_BEFORE",
	"GNO_REALM_PKGS_PREFIX_AFTER",
	"GNO_REALM_PKGS_PREFIX_BEFORE",
	"GNO_STD_PKG_AFTER",
	"GNO_STD_PKG_BEFORE",
	"IMPORT_PREFIX_WHITELIST",
	"IMPORT_ROOT",
	"STDLIB_WHITELIST",
	"ImportClass",
	"ImportEdge",
	"PolicyResult",
	"apply_import_policy",
	"has_prefix",
	"is_whitelisted",
	"rewrite_target",
]
