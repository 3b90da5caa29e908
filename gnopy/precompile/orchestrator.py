# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Top-level precompile flows.

- `precompile_paths`: translate packages and files in place (or under an
  output directory), optionally building the result.
- `precompile_and_check_pkg`: translate, syntax-check and build, then remove
  every generated artifact again.
- `precompile_and_run_mempkg`: translate one in-memory program and run it.

Each call builds its own PrecompileContext; nothing is shared between calls.
Temporary directories and generated artifacts are removed on every exit path.
"""

from __future__ import annotations

import contextlib
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from gnopy.config import CHECK_CFG, DEFAULT_CFG, PrecompileCfg
from gnopy.errors import AggregateError, CleanupError, GnoError
from gnopy.log import trace
from gnopy.mempkg import MemPackage, gno_packages_from_args
from gnopy.precompile.codegen import NO_HEADER, is_generated_artifact
from gnopy.precompile.resolver import PrecompileContext, precompile_file, precompile_pkg, resolve_output_dir
from gnopy.precompile.toolchain import ENTRY_FILENAME, build_package, run_file
from gnopy.precompile.translate import translate


def clean_generated_files(dir_path: Path, *, recursive: bool = False) -> list[Path]:
	"""
	Remove generated artifacts (and generated package `__init__.py` files).

	Hand-written files are never touched. Raises CleanupError on the first
	file that cannot be removed.
	"""
	dir_path = Path(dir_path)
	if not dir_path.is_dir():
		return []
	candidates = dir_path.rglob("*.py") if recursive else dir_path.glob("*.py")
	removed: list[Path] = []
	for p in sorted(candidates):
		if not p.is_file() or not is_generated_artifact(p):
			continue
		try:
			p.unlink()
		except OSError as err:
			raise CleanupError(path=str(p), detail=str(err)) from err
		removed.append(p)
	return removed


@contextlib.contextmanager
def _scoped_tmpdir(prefix: str) -> Iterator[Path]:
	tmp = Path(tempfile.mkdtemp(prefix=prefix))
	try:
		yield tmp
	finally:
		try:
			shutil.rmtree(tmp)
		except OSError as err:
			raise CleanupError(path=str(tmp), detail=str(err)) from err


def _failed_modules(err: Exception) -> int:
	# precompile_pkg joins exactly one error per module that failed.
	return len(err.errors) if isinstance(err, AggregateError) else 1


def _write_mem_package(mem_pkg: MemPackage, dest: Path) -> None:
	for f in mem_pkg.gno_files():
		(dest / f.name).write_text(f.body, encoding="utf-8")


def _precompile_roots(pkg_dirs: Iterable[Path], files: Iterable[Path], ctx: PrecompileContext) -> AggregateError | None:
	"""Translate every root; the error summary counts the modules that failed."""
	errs: list[Exception] = []
	failed = 0
	for pkg_dir in pkg_dirs:
		try:
			precompile_pkg(pkg_dir, ctx)
		except (GnoError, OSError) as err:
			errs.append(err)
			failed += _failed_modules(err)
	for f in files:
		try:
			precompile_file(f, ctx)
		except (GnoError, OSError) as err:
			errs.append(err)
			failed += 1
	return AggregateError.collect(f"{failed} precompile error(s)", errs)


def _split_args(paths: Iterable[Path | str]) -> tuple[list[Path], list[Path]]:
	dirs: list[Path] = []
	files: list[Path] = []
	for raw in paths:
		p = Path(raw)
		if p.is_dir():
			dirs.append(p)
		else:
			files.append(p)
	return gno_packages_from_args(dirs), files


def _touched_dirs(roots: Iterable[Path], ctx: PrecompileContext) -> list[Path]:
	"""Root directories followed by every package translated on the way, without repeats."""
	return list(dict.fromkeys(Path(d).resolve() for d in [*roots, *ctx.precompiled]))


def _build_all(pkg_dirs: Iterable[Path], cfg: PrecompileCfg) -> list[Exception]:
	errs: list[Exception] = []
	for pkg_dir in pkg_dirs:
		try:
			build_package(resolve_output_dir(cfg.output, pkg_dir), cfg)
		except GnoError as err:
			errs.append(err)
	return errs


def precompile_paths(paths: Sequence[Path | str], cfg: PrecompileCfg = DEFAULT_CFG) -> None:
	"""
	Translate the dialect packages and files named by `paths`.

	Generated files stay on disk. With `cfg.build` every package that was named
	(or that holds a named file) is built afterwards.
	"""
	pkg_dirs, files = _split_args(paths)
	ctx = PrecompileContext(cfg)
	agg = _precompile_roots(pkg_dirs, files, ctx)
	if agg is not None:
		raise agg

	if cfg.build:
		build_errs = _build_all(gno_packages_from_args(paths), cfg)
		if build_errs:
			raise AggregateError(f"{len(build_errs)} build error(s)", build_errs)


def precompile_and_check_pkg(
	mem_pkg: MemPackage | None,
	paths: Sequence[Path | str] = (),
	cfg: PrecompileCfg | None = None,
) -> None:
	"""
	Translate, syntax-check and build a package without leaving anything behind.

	`mem_pkg` (when not empty) is written to a temporary directory first;
	`paths` are checked in place. Translation failures of one module do not
	stop the others; the build runs, regardless of `cfg.build`, once every
	module translated. Every generated artifact, including those of
	transitively translated packages, is removed before returning.
	"""
	cfg = cfg or CHECK_CFG
	ctx = PrecompileContext(cfg)
	with contextlib.ExitStack() as stack:
		pkg_dirs, files = _split_args(paths)
		if mem_pkg is not None and not mem_pkg.is_empty():
			tmp = stack.enter_context(_scoped_tmpdir(f"gnopy-{mem_pkg.name}-"))
			_write_mem_package(mem_pkg, tmp)
			pkg_dirs.insert(0, tmp)
		roots = [*pkg_dirs, *(f.parent for f in files)]

		try:
			agg = _precompile_roots(pkg_dirs, files, ctx)
			if agg is not None:
				raise agg
			# Imported packages are built too; their own imports must resolve.
			build_errs = _build_all(_touched_dirs(roots, ctx), cfg)
			if build_errs:
				raise AggregateError(f"{len(build_errs)} build error(s)", build_errs)
		finally:
			for d in _touched_dirs(roots, ctx):
				out = resolve_output_dir(cfg.output, d)
				removed = clean_generated_files(out)
				trace(cfg, f"clean: {out}: removed {len(removed)} file(s)")


def precompile_and_run_mempkg(mem_pkg: MemPackage, logical_path: str, cfg: PrecompileCfg | None = None) -> str:
	"""
	Translate an in-memory program (without header) and run it.

	Returns what the program printed. Every file is written under the fixed
	entry filename, so a package is expected to hold a single program file.
	"""
	cfg = cfg or DEFAULT_CFG
	errs: list[Exception] = []
	output = ""
	with _scoped_tmpdir(f"gnopy-{mem_pkg.name}-") as tmp:
		for f in mem_pkg.gno_files():
			try:
				res = translate(f.body, NO_HEADER, f.name).check()
				(tmp / ENTRY_FILENAME).write_text(res.translated, encoding="utf-8")
				output = run_file(ENTRY_FILENAME, tmp, logical_path, cfg)
			except (GnoError, OSError) as err:
				errs.append(err)
	if errs:
		raise AggregateError(f"{logical_path}: {len(errs)} error(s)", errs)
	return output


__all__ = [
	"clean_generated_files",
	"precompile_and_check_pkg",
	"precompile_and_run_mempkg",
	"precompile_paths",
]
