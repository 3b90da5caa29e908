# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Verbose tracing and diagnostic printing (stderr only; stdout is for reports)."""

from __future__ import annotations

import sys

from gnopy.config import PrecompileCfg


def trace(cfg: PrecompileCfg, msg: str) -> None:
	if cfg.verbose:
		print(f"[gnopy] {msg}", file=sys.stderr, flush=True)


def report_error(path: object, msg: str) -> None:
	print(f"{path}:?:?: error: {msg}", file=sys.stderr)
