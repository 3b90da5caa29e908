# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Translation of one dialect module: parse -> import policy -> codegen.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from gnopy.errors import AggregateError
from gnopy.precompile.codegen import render_module
from gnopy.precompile.parse import ModuleKind, parse_module
from gnopy.precompile.policy import ImportEdge, apply_import_policy


@dataclass(frozen=True)
class TranslationResult:
	"""
	Generated host text plus the imports of the translated tree.

	`error` holds every policy violation and rewrite failure of the module. The
	text is generated regardless, so callers that must reject such modules have
	to call `check()` (or inspect `error`) themselves.
	"""

	translated: str
	imports: tuple[ImportEdge, ...]
	error: AggregateError | None = None

	def check(self) -> "TranslationResult":
		if self.error is not None:
			raise self.error
		return self


def translate(source: str, tags: str, filename: str) -> TranslationResult:
	tree = parse_module(source, filename)
	kind = ModuleKind.from_filename(Path(filename).name)
	# Test modules may import tooling that production modules must not.
	policy = apply_import_policy(tree, filename, check_whitelist=not kind.is_test)
	text = render_module(policy.tree, tags, filename)
	return TranslationResult(translated=text, imports=policy.imports, error=policy.error)


__all__ = ["TranslationResult", "translate"]
