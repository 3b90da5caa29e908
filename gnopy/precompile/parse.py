# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Dialect module parsing.

The dialect is syntactically plain Python, so the host grammar (`ast`) is the
dialect grammar. This is the only place malformed dialect syntax is rejected.
"""

from __future__ import annotations

import ast
import enum
from dataclasses import dataclass
from pathlib import Path

from gnopy.errors import ParseError

GNO_EXT = ".gno"
TEST_SUFFIX = "_test.gno"
FILETEST_SUFFIX = "_filetest.gno"


class ModuleKind(enum.Enum):
	IMPLEMENTATION = "implementation"
	TEST = "test"
	FILETEST = "filetest"

	@classmethod
	def from_filename(cls, name: str) -> "ModuleKind":
		# `_filetest.gno` also ends with `_test.gno`; it must be checked first.
		if name.endswith(FILETEST_SUFFIX):
			return cls.FILETEST
		if name.endswith(TEST_SUFFIX):
			return cls.TEST
		return cls.IMPLEMENTATION

	@property
	def is_test(self) -> bool:
		return self is not ModuleKind.IMPLEMENTATION


@dataclass(frozen=True)
class SourceModule:
	path: str
	body: str
	kind: ModuleKind

	@classmethod
	def from_text(cls, path: str, body: str) -> "SourceModule":
		return cls(path=path, body=body, kind=ModuleKind.from_filename(Path(path).name))


def read_source_module(path: Path) -> SourceModule:
	try:
		body = path.read_text(encoding="utf-8")
	except UnicodeDecodeError as err:
		raise ParseError(filename=str(path), detail=f"not valid UTF-8: {err.reason}") from err
	return SourceModule.from_text(str(path), body)


def parse_module(source: str, filename: str) -> ast.Module:
	try:
		return ast.parse(source, filename=filename, mode="exec")
	except SyntaxError as err:
		raise ParseError(filename=filename, detail=err.msg or str(err), line=err.lineno, column=err.offset) from err
	except ValueError as err:
		# e.g. source containing null bytes
		raise ParseError(filename=filename, detail=str(err)) from err


__all__ = ["GNO_EXT", "ModuleKind", "SourceModule", "read_source_module", "parse_module"]
