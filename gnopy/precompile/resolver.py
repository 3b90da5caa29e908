# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Recursive package resolution.

After a module is translated and written, its rewritten realm/library imports
are mapped back to directories under the root and each package is translated
in turn. A package is marked as precompiled *before* its files are translated,
so diamond dependencies are visited once. The chain of packages currently being
resolved is passed down explicitly; reaching one of them again is an import
cycle and is reported, not silently cut off.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from gnopy.config import PrecompileCfg
from gnopy.errors import AggregateError, GnoError, ImportCycleError
from gnopy.log import trace
from gnopy.precompile.codegen import PACKAGE_INIT, is_generated_artifact, precompile_filename_and_tags, render_package_init
from gnopy.precompile.parse import GNO_EXT, ModuleKind, read_source_module
from gnopy.precompile.policy import IMPORT_ROOT, ImportClass, ImportEdge, has_prefix
from gnopy.precompile.toolchain import verify_file
from gnopy.precompile.translate import translate


class PrecompiledSet:
	"""Package directories already translated during one run."""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._pkgs: set[Path] = set()

	@staticmethod
	def _key(pkg: Path | str) -> Path:
		return Path(pkg).resolve()

	def mark(self, pkg: Path | str) -> bool:
		"""Insert `pkg`; False when it was already present (atomic test-and-insert)."""
		key = self._key(pkg)
		with self._lock:
			if key in self._pkgs:
				return False
			self._pkgs.add(key)
			return True

	def __contains__(self, pkg: object) -> bool:
		if not isinstance(pkg, (str, Path)):
			return False
		key = self._key(pkg)
		with self._lock:
			return key in self._pkgs

	def __iter__(self) -> Iterator[Path]:
		with self._lock:
			snapshot = sorted(self._pkgs)
		return iter(snapshot)

	def __len__(self) -> int:
		with self._lock:
			return len(self._pkgs)


@dataclass
class PrecompileContext:
	"""State of one orchestrator run. Never shared between runs."""

	cfg: PrecompileCfg
	precompiled: PrecompiledSet = field(default_factory=PrecompiledSet)


def resolve_output_dir(output: Path, src_dir: Path) -> Path:
	"""Directory generated files of `src_dir` are written to."""
	output = Path(output)
	src_dir = Path(src_dir)
	if output == Path("."):
		return src_dir
	rel = src_dir
	if rel.is_absolute():
		try:
			rel = rel.resolve().relative_to(Path.cwd().resolve())
		except ValueError:
			rel = Path(*rel.parts[1:])
	return output / rel


def write_artifact(path: Path, text: str) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")


def pkg_dir_for_import(target: str, root: Path) -> Path | None:
	if not has_prefix(target, IMPORT_ROOT + "."):
		return None
	return root.joinpath(*target.split("."))


def _has_gno_files(d: Path) -> bool:
	return d.is_dir() and any(p.is_file() for p in d.glob("*" + GNO_EXT))


def pkg_dirs_from_imports(edges: Iterable[ImportEdge], root: Path) -> list[Path]:
	"""
	Package directories behind rewritten imports, in discovery order.

	`from gno.land.p.demo import avl` names the package `avl` as an imported
	name, so `module.name` directories are candidates as well.
	"""
	out: list[Path] = []
	seen: set[Path] = set()
	for edge in edges:
		if edge.classification is not ImportClass.REWRITTEN:
			continue
		base = pkg_dir_for_import(edge.target, root)
		if base is None:
			continue
		for cand in [base, *(base / n for n in edge.names if n != "*")]:
			if cand in seen or not _has_gno_files(cand):
				continue
			seen.add(cand)
			out.append(cand)
	return out


def precompile_file(src_path: Path, ctx: PrecompileContext, chain: tuple[str, ...] = ()) -> Path:
	"""
	Translate one dialect file, write it, check it, and translate its imports.

	Returns the path of the generated file. Policy violations reject the file
	before anything is written.
	"""
	cfg = ctx.cfg
	src_path = Path(src_path)
	trace(cfg, f"precompile {src_path}")
	pkg_key = str(src_path.parent.resolve())
	if not chain or chain[-1] != pkg_key:
		chain = (*chain, pkg_key)

	module = read_source_module(src_path)
	target_name, tags = precompile_filename_and_tags(module.path)
	res = translate(module.body, tags, module.path).check()

	target = resolve_output_dir(cfg.output, src_path.parent) / target_name
	write_artifact(target, res.translated)

	if not cfg.skip_fmt:
		verify_file(target, cfg)

	if not cfg.skip_imports:
		dep_errs: list[Exception] = []
		for pkg_dir in pkg_dirs_from_imports(res.imports, cfg.resolved_root()):
			try:
				precompile_pkg(pkg_dir, ctx, chain)
			except (GnoError, OSError) as err:
				dep_errs.append(err)
		agg = AggregateError.collect(f"{src_path}: {len(dep_errs)} imported package(s) failed", dep_errs)
		if agg is not None:
			raise agg
	return target


def _write_package_init(out_dir: Path, impl_files: list[str], cfg: PrecompileCfg) -> None:
	init = out_dir / PACKAGE_INIT
	if init.exists() and not is_generated_artifact(init):
		trace(cfg, f"keeping hand-written {init}")
		return
	write_artifact(init, render_package_init(impl_files))


def precompile_pkg(pkg_dir: Path, ctx: PrecompileContext, chain: tuple[str, ...] = ()) -> None:
	"""Translate every dialect file of an imported package, at most once per run."""
	cfg = ctx.cfg
	key = str(Path(pkg_dir).resolve())
	if key in chain:
		raise ImportCycleError(cycle=(*chain[chain.index(key):], key))
	if not ctx.precompiled.mark(key):
		trace(cfg, f"already precompiled: {key}")
		return
	chain = (*chain, key)

	errs: list[Exception] = []
	impl_files: list[str] = []
	for src in sorted(Path(key).glob("*" + GNO_EXT)):
		try:
			target = precompile_file(src, ctx, chain)
		except (GnoError, OSError) as err:
			errs.append(err)
			continue
		if ModuleKind.from_filename(src.name) is ModuleKind.IMPLEMENTATION:
			impl_files.append(target.name)

	if impl_files:
		_write_package_init(resolve_output_dir(cfg.output, Path(key)), impl_files, cfg)

	agg = AggregateError.collect(f"{key}: {len(errs)} precompile error(s)", errs)
	if agg is not None:
		raise agg


__all__ = [
	"PrecompileContext",
	"PrecompiledSet",
	"pkg_dir_for_import",
	"pkg_dirs_from_imports",
	"precompile_file",
	"precompile_pkg",
	"resolve_output_dir",
	"write_artifact",
]
