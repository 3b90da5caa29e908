# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Dialect-to-host precompiler.

Data flows one way: parse -> import policy -> codegen -> written artifact ->
resolver (recursion) / toolchain (verification). Only the orchestrator
(`gnopy.precompile.orchestrator`) touches the filesystem outside scoped
temporary directories.
"""

from gnopy.precompile.codegen import NO_HEADER, precompile_filename_and_tags
from gnopy.precompile.translate import TranslationResult, translate

__all__ = [
	"NO_HEADER",
	"TranslationResult",
	"precompile_filename_and_tags",
	"translate",
]
