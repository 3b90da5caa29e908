# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Precompile configuration.

Tool invocations are explicit argument-vector prefixes (one field per tool);
nothing is ever split from a command string.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, replace
from pathlib import Path

# Executes the entry file as `__main__` through runpy so that syntax errors in the
# entry surface as a traceback too, not only runtime exceptions.
RUN_BOOTSTRAP = "import runpy, sys; runpy.run_path(sys.argv[1], run_name='__main__')"

# Prints the directory that holds the package named by argv[1]; fails when it is not importable.
ROOT_QUERY = (
	"import importlib.util, os, sys; "
	"spec = importlib.util.find_spec(sys.argv[1]); "
	"print(os.path.dirname(list(spec.submodule_search_locations)[0]))"
)

DEFAULT_TIMEOUT = 300.0


def fmt_cmd_for(python: str) -> tuple[str, ...]:
	return (python, "-m", "py_compile")


def build_cmd_for(python: str) -> tuple[str, ...]:
	return (python, "-m", "gnopy.hostbuild")


def run_cmd_for(python: str) -> tuple[str, ...]:
	return (python, "-c", RUN_BOOTSTRAP)


def query_cmd_for(python: str) -> tuple[str, ...]:
	return (python, "-c", ROOT_QUERY)


@dataclass(frozen=True)
class PrecompileCfg:
	verbose: bool = False
	skip_fmt: bool = False
	skip_imports: bool = False
	build: bool = False
	fmt_cmd: tuple[str, ...] = fmt_cmd_for(sys.executable)
	build_cmd: tuple[str, ...] = build_cmd_for(sys.executable)
	run_cmd: tuple[str, ...] = run_cmd_for(sys.executable)
	query_cmd: tuple[str, ...] = query_cmd_for(sys.executable)
	output: Path = Path(".")
	# Directory holding the `examples` package tree; None means the current directory.
	root_dir: Path | None = None
	timeout: float | None = DEFAULT_TIMEOUT

	def with_python(self, python: str) -> "PrecompileCfg":
		return replace(
			self,
			fmt_cmd=fmt_cmd_for(python),
			build_cmd=build_cmd_for(python),
			run_cmd=run_cmd_for(python),
			query_cmd=query_cmd_for(python),
		)

	def resolved_root(self) -> Path:
		return (self.root_dir if self.root_dir is not None else Path.cwd()).resolve()


DEFAULT_CFG = PrecompileCfg()

# Configuration used by the check flow when the caller passes none.
CHECK_CFG = PrecompileCfg(build=True)


def register_flags(p: argparse.ArgumentParser) -> None:
	p.add_argument("--verbose", action="store_true", help="verbose output when running")
	p.add_argument("--skip-fmt", action="store_true", help="do not check syntax of generated .py files")
	p.add_argument("--skip-imports", action="store_true", help="do not precompile imports recursively")
	p.add_argument("--build", action="store_true", help="run the host build on generated files, ignoring test files")
	p.add_argument(
		"--python-binary",
		type=str,
		default=sys.executable,
		help=(
			"host interpreter used for syntax checks, builds and runs; builds need gnopy and lark "
			"importable from it (default: the current interpreter)"
		),
	)
	p.add_argument("--output", type=Path, default=Path("."), help="output directory (default: next to the sources)")
	p.add_argument(
		"--root-dir",
		type=Path,
		default=None,
		help="directory containing the `examples` package tree (default: current directory)",
	)
	p.add_argument(
		"--timeout",
		type=float,
		default=DEFAULT_TIMEOUT,
		help=f"seconds allowed per toolchain invocation, 0 disables (default: {DEFAULT_TIMEOUT:g})",
	)


def from_args(args: argparse.Namespace) -> PrecompileCfg:
	cfg = PrecompileCfg(
		verbose=bool(args.verbose),
		skip_fmt=bool(args.skip_fmt),
		skip_imports=bool(args.skip_imports),
		build=bool(args.build),
		output=args.output,
		root_dir=args.root_dir,
		timeout=args.timeout if args.timeout and args.timeout > 0 else None,
	)
	return cfg.with_python(args.python_binary)


__all__ = ["PrecompileCfg", "DEFAULT_CFG", "CHECK_CFG", "RUN_BOOTSTRAP", "register_flags", "from_args"]
