# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Host toolchain invocations: syntax check, build, run.

Every invocation is a blocking subprocess call with an explicit argument vector,
bounded by `cfg.timeout` (the child is killed when it expires). Each call gets
its own scratch directory, which also receives the host bytecode cache so that
no `__pycache__` directories are left next to generated artifacts.
"""

from __future__ import annotations

import os
import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from gnopy.config import PrecompileCfg
from gnopy.errors import BuildError, FormatCheckError, ProcessStartError, RunError, ToolchainError
from gnopy.log import trace
from gnopy.precompile.codegen import BUILD_TAG, GEN_SUFFIX, is_test_artifact
from gnopy.precompile.policy import IMPORT_ROOT

# Fixed filename a single module is written under for the run flow.
ENTRY_FILENAME = "main" + GEN_SUFFIX

# The host prints this line ahead of every uncaught exception, including syntax
# errors raised while the bootstrap loads the entry. Program output never
# contains it unless the program prints a traceback itself.
ERROR_SENTINEL = "Traceback (most recent call last):"

# Opening of a traceback frame line whose path runs up to the entry filename.
_FRAME_OPENER = 'File "'
_FRAME_HEAD = re.compile(r'File "[^"\n]*$')

_MISSING_MODULE = re.compile(r"ModuleNotFoundError: No module named '([^']+)'")

# Directory holding the gnopy package; generated code imports gnopy.stdlibs and
# the build driver is gnopy.hostbuild.
_GNOPY_HOME = str(Path(__file__).resolve().parents[2])


@dataclass(frozen=True)
class RunDiagnostic:
	raw: str
	is_error: bool
	normalized: str


def _text(data: str | bytes | None) -> str:
	if data is None:
		return ""
	if isinstance(data, bytes):
		return data.decode("utf-8", errors="replace")
	return data


def _tool_env(cfg: PrecompileCfg, scratch: str) -> dict[str, str]:
	env = dict(os.environ)
	env["PYTHONPYCACHEPREFIX"] = os.path.join(scratch, "pycache")
	parts = [str(cfg.resolved_root()), _GNOPY_HOME]
	prev = env.get("PYTHONPATH")
	if prev:
		parts.append(prev)
	env["PYTHONPATH"] = os.pathsep.join(dict.fromkeys(parts))
	return env


def _invoke(
	argv: Sequence[str],
	*,
	cfg: PrecompileCfg,
	scratch: str,
	target: str,
	cwd: Path | None = None,
) -> subprocess.CompletedProcess[str]:
	trace(cfg, f"exec: {' '.join(argv)}" + (f" (in {cwd})" if cwd is not None else ""))
	try:
		return subprocess.run(
			list(argv),
			cwd=str(cwd) if cwd is not None else None,
			env=_tool_env(cfg, scratch),
			capture_output=True,
			text=True,
			timeout=cfg.timeout,
			check=False,
		)
	except OSError as err:
		raise ProcessStartError(target=target, detail=f"{argv[0]}: {err}") from err


def _timeout_detail(cfg: PrecompileCfg) -> str:
	return f"timed out after {cfg.timeout:g}s"


def verify_file(path: Path, cfg: PrecompileCfg) -> None:
	"""
	Syntax-check one generated file with the host formatter in lint mode.

	This is fast and does not look at imports.
	"""
	with tempfile.TemporaryDirectory(prefix="gnopy-fmt-") as scratch:
		try:
			res = _invoke([*cfg.fmt_cmd, str(path)], cfg=cfg, scratch=scratch, target=str(path))
		except subprocess.TimeoutExpired as err:
			raise FormatCheckError(
				target=str(path),
				output=_text(err.stdout) + _text(err.stderr),
				detail=_timeout_detail(cfg),
			) from err
	out = (res.stdout or "") + (res.stderr or "")
	if res.returncode != 0 or out.strip():
		raise FormatCheckError(target=str(path), output=out, detail=f"exit status {res.returncode}")


def guess_root_dir(file_or_pkg: Path, cfg: PrecompileCfg) -> Path:
	"""Ask the host runtime where the rewritten-import root package lives."""
	abs_path = Path(file_or_pkg).resolve()
	cwd = abs_path if abs_path.is_dir() else abs_path.parent
	with tempfile.TemporaryDirectory(prefix="gnopy-query-") as scratch:
		try:
			res = _invoke([*cfg.query_cmd, IMPORT_ROOT], cfg=cfg, scratch=scratch, target=str(file_or_pkg), cwd=cwd)
		except subprocess.TimeoutExpired as err:
			raise ToolchainError(target=str(file_or_pkg), detail="can't guess --root-dir: " + _timeout_detail(cfg)) from err
	root = res.stdout.strip()
	if res.returncode != 0 or not root:
		raise ToolchainError(target=str(file_or_pkg), output=res.stderr, detail="can't guess --root-dir")
	return Path(root)


def _build_failure_detail(output: str, returncode: int, cfg: PrecompileCfg) -> str:
	# The driver itself did not start: gnopy or lark is missing from the host interpreter.
	if ERROR_SENTINEL in output:
		m = _MISSING_MODULE.search(output)
		if m is not None:
			return (
				f"host build driver could not start: {cfg.build_cmd[0]} has no module named {m.group(1)!r}; "
				"install gnopy and its dependencies into the --python-binary interpreter"
			)
	return f"host build exit status {returncode}"


def build_package(file_or_pkg: Path, cfg: PrecompileCfg) -> None:
	"""
	Build the generated files of a package (or one generated file).

	The most thorough check: the host build driver also requires every import to
	resolve. Test and file-test artifacts are left out.
	"""
	p = Path(file_or_pkg)
	if not p.exists():
		raise BuildError(target=str(p), detail="invalid file or package path")
	if p.is_dir():
		files = [f for f in p.glob("*.py") if f.is_file() and not is_test_artifact(f.name)]
	else:
		files = [p]
	if not files:
		trace(cfg, f"build: nothing to build in {p}")
		return
	names = sorted(str(f.resolve()) for f in files)

	try:
		root: Path | None = guess_root_dir(p, cfg)
	except ToolchainError as err:
		trace(cfg, f"build: {err.detail}, using the current directory")
		root = None

	argv = [*cfg.build_cmd]
	if cfg.verbose:
		argv.append("-v")
	argv.append(f"--tags={BUILD_TAG}")
	argv.extend(names)
	with tempfile.TemporaryDirectory(prefix="gnopy-build-") as scratch:
		try:
			res = _invoke(argv, cfg=cfg, scratch=scratch, target=str(p), cwd=root)
		except subprocess.TimeoutExpired as err:
			raise BuildError(
				target=str(p),
				output=_text(err.stdout) + _text(err.stderr),
				detail=_timeout_detail(cfg),
			) from err
	if res.returncode != 0:
		output = (res.stdout or "") + (res.stderr or "")
		raise BuildError(target=str(p), output=output, detail=_build_failure_detail(output, res.returncode, cfg))
	trace(cfg, f"build: ok {p}")


def normalize_diagnostic_paths(text: str, logical_path: str, entry: str = ENTRY_FILENAME) -> str:
	"""
	Re-prefix a diagnostic with the caller's logical source path.

	Everything before the first occurrence of `entry` (temporary directory,
	header lines) is dropped; later occurrences lose their directory too. A
	traceback frame keeps its `File "` opener so the quotes stay balanced.
	Text without `entry` is returned unchanged.
	"""
	head, sep, tail = text.partition(entry)
	if not sep:
		return text
	tail = re.sub(r"[^\s\"']*" + re.escape(entry), lambda _m: logical_path, tail)
	opener = _FRAME_OPENER if _FRAME_HEAD.search(head) else ""
	return opener + logical_path + tail


def classify_run_output(stderr: str, logical_path: str) -> RunDiagnostic:
	"""
	Split host diagnostics from program output on the error stream.

	This is the single place that depends on the textual format of host
	diagnostics.
	"""
	text = stderr.strip()
	return RunDiagnostic(
		raw=stderr,
		is_error=ERROR_SENTINEL in text,
		normalized=normalize_diagnostic_paths(text, logical_path),
	)


def run_file(target_filename: str, tmp_dir: Path, logical_path: str, cfg: PrecompileCfg) -> str:
	"""
	Execute one generated module and return what it printed.

	A host diagnostic on stderr raises RunError carrying the normalized text.
	Otherwise stdout is returned; a program that only wrote to stderr gets that
	text back instead.
	"""
	entry = Path(tmp_dir) / target_filename
	with tempfile.TemporaryDirectory(prefix="gnopy-run-") as scratch:
		try:
			res = _invoke([*cfg.run_cmd, str(entry)], cfg=cfg, scratch=scratch, target=logical_path, cwd=Path(tmp_dir))
		except subprocess.TimeoutExpired as err:
			raise RunError(output=f"{logical_path}: {_timeout_detail(cfg)}") from err
	diag = classify_run_output(res.stderr or "", logical_path)
	if diag.is_error and diag.normalized:
		raise RunError(output=diag.normalized)
	if res.stdout:
		return res.stdout
	return diag.normalized


__all__ = [
	"ENTRY_FILENAME",
	"ERROR_SENTINEL",
	"RunDiagnostic",
	"build_package",
	"classify_run_output",
	"guess_root_dir",
	"normalize_diagnostic_paths",
	"run_file",
	"verify_file",
]
