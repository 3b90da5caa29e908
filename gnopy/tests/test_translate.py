# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from gnopy.errors import AggregateError, ParseError
from gnopy.precompile import NO_HEADER, translate
from gnopy.precompile.codegen import GENERATED_MARKER


def test_translate_emits_header_and_rewrites() -> None:
	res = translate("import std\n\ndef Render(path):\n\treturn 'ok'\n", "gno", "render.gno").check()
	lines = res.translated.splitlines()
	assert lines[0] == GENERATED_MARKER
	assert lines[1] == ""
	assert lines[2] == "#gno:build gno"
	assert "import gnopy.stdlibs.stdshim as std" in res.translated
	assert [e.source for e in res.imports] == ["std"]


def test_translate_without_header() -> None:
	res = translate("print('hi')\n", NO_HEADER, "main.gno")
	assert res.error is None
	assert res.translated == "print('hi')\n"


def test_policy_errors_do_not_stop_generation() -> None:
	res = translate("import os\nimport std\n", "gno", "bad.gno")
	assert isinstance(res.error, AggregateError)
	assert "import os" in res.translated
	assert "import gnopy.stdlibs.stdshim as std" in res.translated
	with pytest.raises(AggregateError):
		res.check()


def test_test_modules_skip_the_whitelist() -> None:
	res = translate("import os\nimport gnopy._test.harness\n", "gno && test", "bad_test.gno")
	assert res.error is None
	res = translate("import subprocess\n", "gno && filetest", "z_filetest.gno")
	assert res.error is None


def test_parse_failure_raises() -> None:
	with pytest.raises(ParseError) as exc:
		translate("def broken(:\n", "gno", "broken.gno")
	assert exc.value.filename == "broken.gno"
