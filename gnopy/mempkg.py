# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
In-memory dialect packages and path discovery.

A MemPackage is what callers hand to the check/run flows: a package name, its
dialect import path and the raw bodies of its files.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from gnopy.precompile.parse import GNO_EXT


@dataclass(frozen=True)
class MemFile:
	name: str
	body: str


@dataclass(frozen=True)
class MemPackage:
	name: str
	path: str = ""
	files: tuple[MemFile, ...] = field(default_factory=tuple)

	def is_empty(self) -> bool:
		return not self.files

	def gno_files(self) -> list[MemFile]:
		return [f for f in self.files if f.name.endswith(GNO_EXT)]


def read_mem_package(dir_path: Path, pkg_path: str = "") -> MemPackage:
	"""Read every dialect file of `dir_path` (sorted by name) into a MemPackage."""
	if not dir_path.is_dir():
		raise ValueError(f"not a package directory: {dir_path}")
	files = tuple(
		MemFile(name=p.name, body=p.read_text(encoding="utf-8"))
		for p in sorted(dir_path.iterdir())
		if p.is_file() and p.name.endswith(GNO_EXT)
	)
	return MemPackage(name=dir_path.resolve().name, path=pkg_path, files=files)


def mem_package_from_file(path: Path, pkg_path: str = "") -> MemPackage:
	return MemPackage(
		name=path.stem,
		path=pkg_path,
		files=(MemFile(name=path.name, body=path.read_text(encoding="utf-8")),),
	)


def _walk_gno_files(root: Path) -> Iterable[Path]:
	for dirpath, dirnames, filenames in os.walk(root):
		dirnames.sort()
		for fname in sorted(filenames):
			if fname.endswith(GNO_EXT):
				yield Path(dirpath) / fname


def gno_files_from_args(paths: Iterable[Path | str]) -> list[Path]:
	"""Files named directly are kept as-is; directories are walked for `*.gno`."""
	out: list[Path] = []
	for raw in paths:
		p = Path(raw)
		if not p.exists():
			raise ValueError(f"invalid file or package path: {p}")
		if p.is_dir():
			out.extend(_walk_gno_files(p))
		else:
			out.append(p)
	return out


def gno_packages_from_args(paths: Iterable[Path | str]) -> list[Path]:
	"""Package directories: any directory holding a `*.gno` file, or the directory of a file named directly."""
	out: list[Path] = []
	seen: set[Path] = set()
	for raw in paths:
		p = Path(raw)
		if not p.exists():
			raise ValueError(f"invalid file or package path: {p}")
		if not p.is_dir():
			if p.parent not in seen:
				seen.add(p.parent)
				out.append(p.parent)
			continue
		for f in _walk_gno_files(p):
			if f.parent not in seen:
				seen.add(f.parent)
				out.append(f.parent)
	return out


__all__ = [
	"MemFile",
	"MemPackage",
	"gno_files_from_args",
	"gno_packages_from_args",
	"mem_package_from_file",
	"read_mem_package",
]
