# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from gnopy.config import from_args, register_flags
from gnopy.errors import AggregateError, GnoError
from gnopy.log import report_error
from gnopy.mempkg import MemFile, MemPackage, mem_package_from_file
from gnopy.precompile.orchestrator import (
	clean_generated_files,
	precompile_and_check_pkg,
	precompile_and_run_mempkg,
	precompile_paths,
)

STDIN_ARG = "-"
STDIN_FILENAME = "stdin.gno"


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="gnopy", description="Precompile Gno-flavoured Python (.gno) into host Python")
	sub = p.add_subparsers(dest="cmd", required=True)

	pre = sub.add_parser("precompile", help="Translate .gno packages/files into generated .py files")
	pre.add_argument("paths", nargs="+", type=Path, help="Package directories or .gno files")
	register_flags(pre)
	pre.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")

	check = sub.add_parser("check", help="Translate, syntax-check and build, then remove generated files")
	check.add_argument("paths", nargs="+", type=str, help=f"Package directories or .gno files; {STDIN_ARG!r} reads one file from stdin")
	register_flags(check)
	check.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")

	run = sub.add_parser("run", help="Translate one .gno program and run it")
	run.add_argument("file", type=Path, help="Path to a .gno file")
	run.add_argument(
		"--logical-path",
		type=str,
		default=None,
		help="Path reported in diagnostics instead of the temporary file (default: FILE)",
	)
	register_flags(run)
	run.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")

	clean = sub.add_parser("clean", help="Remove generated files (recursively)")
	clean.add_argument("paths", nargs="+", type=Path, help="Directories to clean")
	clean.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")
	return p


def _print_json(obj: dict) -> None:
	print(json.dumps(obj, sort_keys=True, separators=(",", ":")))


def _report_failure(err: Exception, *, as_json: bool) -> int:
	if as_json:
		body = err.to_dict() if isinstance(err, GnoError) else {"reason_code": "error", "message": str(err)}
		_print_json({"ok": False, "error": body})
		return 2
	if isinstance(err, AggregateError):
		print(err.summary, file=sys.stderr)
		for leaf in err.leaves():
			print(str(leaf), file=sys.stderr)
	elif isinstance(err, GnoError):
		print(err.format_human(), file=sys.stderr)
	else:
		report_error("gnopy", str(err))
	return 2


def _stdin_package() -> MemPackage:
	return MemPackage(name="stdin", files=(MemFile(name=STDIN_FILENAME, body=sys.stdin.read()),))


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)

	if args.cmd == "precompile":
		cfg = from_args(args)
		try:
			precompile_paths(list(args.paths), cfg)
		except (GnoError, ValueError, OSError) as err:
			return _report_failure(err, as_json=args.json)
		if args.json:
			_print_json({"ok": True})
		return 0

	if args.cmd == "check":
		cfg = from_args(args)
		mem_pkg = _stdin_package() if STDIN_ARG in args.paths else None
		paths = [Path(a) for a in args.paths if a != STDIN_ARG]
		try:
			precompile_and_check_pkg(mem_pkg, paths, cfg)
		except (GnoError, ValueError, OSError) as err:
			return _report_failure(err, as_json=args.json)
		if args.json:
			_print_json({"ok": True})
		return 0

	if args.cmd == "run":
		cfg = from_args(args)
		logical = args.logical_path if args.logical_path is not None else str(args.file)
		try:
			output = precompile_and_run_mempkg(mem_package_from_file(args.file), logical, cfg)
		except (GnoError, ValueError, OSError) as err:
			return _report_failure(err, as_json=args.json)
		if args.json:
			_print_json({"ok": True, "output": output})
		else:
			sys.stdout.write(output)
		return 0

	if args.cmd == "clean":
		removed: list[Path] = []
		try:
			for d in args.paths:
				removed.extend(clean_generated_files(d, recursive=True))
		except GnoError as err:
			return _report_failure(err, as_json=args.json)
		if args.json:
			_print_json({"ok": True, "removed": [str(r) for r in removed]})
		return 0

	raise AssertionError("unreachable")


if __name__ == "__main__":
	raise SystemExit(main())
