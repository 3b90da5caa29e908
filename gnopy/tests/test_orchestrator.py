# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import tempfile
from dataclasses import replace
from pathlib import Path

import pytest

from gnopy.config import PrecompileCfg
from gnopy.errors import AggregateError, BuildError, ImportPolicyViolation, RunError
from gnopy.mempkg import MemFile, MemPackage
from gnopy.precompile.orchestrator import (
	clean_generated_files,
	precompile_and_check_pkg,
	precompile_and_run_mempkg,
	precompile_paths,
)
from gnopy.tests.helpers import demo_pkg_dir, generated_files, realm_dir, write_file

AVL = """
class Tree:
	def __init__(self):
		self.items = {}

	def set(self, key, value):
		self.items[key] = value
		return self
""".lstrip()

BOARDS = """
import std
import gno.land.p.demo.avl

boards = gno.land.p.demo.avl.Tree()


def Render(path):
	return "boards: " + path
""".lstrip()


@pytest.fixture
def scratch_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
	"""Temporary directories of the flows are created here instead of the system location."""
	d = tmp_path / "scratch"
	d.mkdir()
	monkeypatch.setattr(tempfile, "tempdir", str(d))
	return d


def _mem(name: str, **files: str) -> MemPackage:
	return MemPackage(name=name, files=tuple(MemFile(fname.replace("__", "."), body) for fname, body in files.items()))


def test_check_in_memory_package(host_cfg: PrecompileCfg, scratch_tmp: Path) -> None:
	pkg = _mem("hello", hello__gno="import std\n\n\ndef Hello():\n\treturn 'hi'\n", notes__txt="not a source file")
	precompile_and_check_pkg(pkg, [], host_cfg)
	assert list(scratch_tmp.iterdir()) == []


def test_check_resolves_and_cleans_dependencies(tmp_path: Path, host_cfg: PrecompileCfg) -> None:
	write_file(demo_pkg_dir(tmp_path, "avl") / "avl.gno", AVL)
	app = realm_dir(tmp_path, "boards")
	write_file(app / "boards.gno", BOARDS)
	write_file(app / "boards_test.gno", "import os\n")

	precompile_and_check_pkg(None, [app], host_cfg)
	assert generated_files(tmp_path) == []
	assert not (demo_pkg_dir(tmp_path, "avl") / "__init__.py").exists()
	assert not (app / "__init__.py").exists()


def test_check_rejects_non_whitelisted_import(host_cfg: PrecompileCfg, scratch_tmp: Path) -> None:
	pkg = _mem("bad", bad__gno="import os\nimport std\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_check_pkg(pkg, [], host_cfg)
	msg = str(exc.value)
	assert msg.startswith("1 precompile error(s)")
	assert "bad.gno" in msg
	assert 'import "os" is not permitted' in msg
	assert [type(e) for e in exc.value.leaves()] == [ImportPolicyViolation]
	assert list(scratch_tmp.iterdir()) == []


def test_check_reports_build_failures_and_still_cleans(tmp_path: Path, host_cfg: PrecompileCfg) -> None:
	app = realm_dir(tmp_path, "broken")
	write_file(app / "broken.gno", "import gno.land.p.demo.missing\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_check_pkg(None, [app], host_cfg)
	(leaf,) = exc.value.leaves()
	assert isinstance(leaf, BuildError)
	assert "could not import examples.gno.land.p.demo.missing" in leaf.output
	assert generated_files(tmp_path) == []


def test_run_returns_program_output(host_cfg: PrecompileCfg, scratch_tmp: Path) -> None:
	pkg = _mem("main", z_0_filetest__gno="def main():\n\tprint('hello', 42)\n\n\nmain()\n")
	assert precompile_and_run_mempkg(pkg, "files/z_0_filetest.gno", host_cfg) == "hello 42\n"
	assert list(scratch_tmp.iterdir()) == []


def test_run_failure_uses_logical_path(host_cfg: PrecompileCfg, scratch_tmp: Path) -> None:
	pkg = _mem("main", z_1_filetest__gno="x = 1\nundefined_name()\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_run_mempkg(pkg, "files/z_1_filetest.gno", host_cfg)
	(leaf,) = exc.value.leaves()
	assert isinstance(leaf, RunError)
	assert leaf.output.startswith('File "files/z_1_filetest.gno", line 2')
	assert "NameError" in leaf.output
	assert list(scratch_tmp.iterdir()) == []


def test_run_std_calls_need_a_chain(host_cfg: PrecompileCfg) -> None:
	pkg = _mem("main", z_2_filetest__gno="import std\n\nprint(std.GetHeight())\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_run_mempkg(pkg, "files/z_2_filetest.gno", host_cfg)
	assert "ShimError" in str(exc.value)


def test_precompile_paths_keeps_output(tmp_path: Path, host_cfg: PrecompileCfg) -> None:
	write_file(demo_pkg_dir(tmp_path, "avl") / "avl.gno", AVL)
	app = realm_dir(tmp_path, "boards")
	write_file(app / "boards.gno", BOARDS)

	precompile_paths([app], replace(host_cfg, build=True))
	text = (app / "boards_gno_gen.py").read_text(encoding="utf-8")
	assert text.startswith("# Code generated by gnopy. DO NOT EDIT.\n\n#gno:build gno\n\n")
	assert "import examples.gno.land.p.demo.avl\nfrom examples import gno\n" in text
	assert (demo_pkg_dir(tmp_path, "avl") / "avl_gno_gen.py").is_file()

	removed = clean_generated_files(tmp_path, recursive=True)
	assert {p.name for p in removed} == {"boards_gno_gen.py", "avl_gno_gen.py", "__init__.py"}
	assert generated_files(tmp_path) == []


def test_precompile_paths_aggregates_every_failure(tmp_path: Path, host_cfg: PrecompileCfg) -> None:
	pkg = tmp_path / "pkg"
	write_file(pkg / "a.gno", "import os\nimport subprocess\n")
	write_file(pkg / "b.gno", "def (:\n")
	write_file(pkg / "c.gno", "C = 1\n")
	with pytest.raises(AggregateError) as exc:
		precompile_paths([pkg], host_cfg)
	assert str(exc.value).startswith("2 precompile error(s)")
	assert len(list(exc.value.leaves())) == 3
	assert (pkg / "c_gno_gen.py").is_file()


def test_check_counts_failed_modules_not_messages(tmp_path: Path, host_cfg: PrecompileCfg) -> None:
	pkg = tmp_path / "pkg"
	write_file(pkg / "a.gno", "import os\nimport subprocess\nimport socket\n")
	write_file(pkg / "c.gno", "C = 1\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_check_pkg(None, [pkg], host_cfg)
	assert str(exc.value).startswith("1 precompile error(s)")
	assert [type(e) for e in exc.value.leaves()] == [ImportPolicyViolation] * 3
	assert generated_files(tmp_path) == []


def test_check_builds_imported_packages(tmp_path: Path, host_cfg: PrecompileCfg) -> None:
	dep = demo_pkg_dir(tmp_path, "a")
	write_file(dep / "a.gno", "import gno.land.p.demo.missing\n")
	app = realm_dir(tmp_path, "app")
	write_file(app / "app.gno", "import gno.land.p.demo.a\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_check_pkg(None, [app], host_cfg)
	assert str(exc.value).startswith("1 build error(s)")
	(leaf,) = exc.value.leaves()
	assert isinstance(leaf, BuildError)
	assert Path(leaf.target) == dep.resolve()
	assert "could not import examples.gno.land.p.demo.missing" in leaf.output
	assert generated_files(tmp_path) == []


def test_check_parse_failure_removes_temp_dir(host_cfg: PrecompileCfg, scratch_tmp: Path) -> None:
	pkg = _mem("broken", broken__gno="def (:\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_check_pkg(pkg, [], host_cfg)
	assert str(exc.value).startswith("1 precompile error(s)")
	assert list(scratch_tmp.iterdir()) == []


def test_run_timeout_removes_temp_dir(host_cfg: PrecompileCfg, scratch_tmp: Path) -> None:
	pkg = _mem("main", z_3_filetest__gno="import time\n\ntime.sleep(30)\n")
	with pytest.raises(AggregateError) as exc:
		precompile_and_run_mempkg(pkg, "files/z_3_filetest.gno", replace(host_cfg, timeout=0.5))
	(leaf,) = exc.value.leaves()
	assert isinstance(leaf, RunError)
	assert "timed out" in leaf.output
	assert list(scratch_tmp.iterdir()) == []
