# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from gnopy import cli
from gnopy.tests.helpers import generated_files, write_file

REPO_ROOT = Path(__file__).resolve().parents[2]


def _gnopy(args: list[str], *, stdin: str | None = None) -> subprocess.CompletedProcess[str]:
	# Use the repo root as cwd so `python -m gnopy` resolves without an install.
	return subprocess.run(
		[sys.executable, "-m", "gnopy", *args],
		cwd=str(REPO_ROOT),
		input=stdin,
		check=False,
		capture_output=True,
		text=True,
	)


def test_check_reads_stdin(tmp_path: Path) -> None:
	res = _gnopy(["check", "-", "--root-dir", str(tmp_path)], stdin="import std\n\nX = 1\n")
	assert res.returncode == 0, res.stderr


def test_check_json_report_for_rejected_import(tmp_path: Path) -> None:
	res = _gnopy(["check", "-", "--json", "--root-dir", str(tmp_path)], stdin="import socket\n")
	assert res.returncode == 2
	report = json.loads(res.stdout)
	assert report["ok"] is False
	assert report["error"]["reason_code"] == "aggregate"
	assert "stdin.gno" in json.dumps(report)
	assert 'import \\"socket\\" is not permitted' in json.dumps(report)


def test_run_prints_program_output(tmp_path: Path) -> None:
	prog = write_file(tmp_path / "hello_filetest.gno", "for i in range(3):\n\tprint(i)\n")
	res = _gnopy(["run", str(prog), "--root-dir", str(tmp_path)])
	assert res.returncode == 0, res.stderr
	assert res.stdout == "0\n1\n2\n"


def test_run_failure_names_the_source(tmp_path: Path) -> None:
	prog = write_file(tmp_path / "boom_filetest.gno", "raise RuntimeError('boom')\n")
	res = _gnopy(["run", str(prog), "--logical-path", "files/boom_filetest.gno", "--root-dir", str(tmp_path)])
	assert res.returncode == 2
	assert 'files/boom_filetest.gno", line 1' in res.stderr
	assert "RuntimeError: boom" in res.stderr


def test_precompile_then_clean(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	pkg = tmp_path / "pkg"
	write_file(pkg / "a.gno", "A = 1\n")
	write_file(pkg / "a_test.gno", "import os\n")
	write_file(pkg / "keep.py", "KEEP = 1\n")

	assert cli.main(["precompile", str(pkg), "--skip-fmt", "--root-dir", str(tmp_path)]) == 0
	assert [p.name for p in generated_files(tmp_path)] == [".a_test_gno_gen_test.py", "a_gno_gen.py"]

	assert cli.main(["clean", str(tmp_path), "--json"]) == 0
	report = json.loads(capsys.readouterr().out)
	assert report["ok"] is True
	assert len(report["removed"]) == 3
	assert generated_files(tmp_path) == []
	assert (pkg / "keep.py").is_file()


def test_precompile_failure_exit_status(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	write_file(tmp_path / "pkg" / "bad.gno", "import os\n")
	assert cli.main(["precompile", str(tmp_path / "pkg"), "--skip-fmt"]) == 2
	err = capsys.readouterr().err
	assert err.splitlines()[0] == "1 precompile error(s)"
	assert 'import "os" is not permitted' in err
