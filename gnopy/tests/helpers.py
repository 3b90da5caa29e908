# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path


def write_file(path: Path, text: str) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")
	return path


def demo_pkg_dir(root: Path, name: str) -> Path:
	return root / "examples" / "gno" / "land" / "p" / "demo" / name


def realm_dir(root: Path, name: str) -> Path:
	return root / "examples" / "gno" / "land" / "r" / "demo" / name


def generated_files(root: Path) -> list[Path]:
	return sorted(p for p in root.rglob("*.py") if p.name.endswith("_gno_gen.py") or p.name.endswith("_gno_gen_test.py"))
