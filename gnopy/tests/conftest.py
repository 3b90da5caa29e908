# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

import pytest

from gnopy.config import PrecompileCfg


@pytest.fixture
def offline_cfg(tmp_path: Path) -> PrecompileCfg:
	"""Resolution only: no external processes are started."""
	return PrecompileCfg(skip_fmt=True, root_dir=tmp_path, timeout=60.0)


@pytest.fixture
def host_cfg(tmp_path: Path) -> PrecompileCfg:
	"""The running interpreter is the host toolchain."""
	return PrecompileCfg(root_dir=tmp_path, timeout=120.0)
