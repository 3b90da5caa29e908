# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Error taxonomy for the precompile pipeline.

Every error carries a stable `reason_code` so the CLI can emit machine-readable
reports. Errors that wrap an external process keep its full captured output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Iterator


@dataclass(eq=False)
class GnoError(Exception):
	"""Base class for all precompile errors."""

	reason_code: ClassVar[str] = "error"

	def __str__(self) -> str:
		return self.format_human()

	def format_human(self) -> str:
		return self.reason_code

	def to_dict(self) -> dict[str, Any]:
		return {"reason_code": self.reason_code, "message": self.format_human()}


@dataclass(eq=False)
class ParseError(GnoError):
	"""Malformed dialect source. No recovery is attempted."""

	reason_code: ClassVar[str] = "parse"

	filename: str
	detail: str
	line: int | None = None
	column: int | None = None

	def format_human(self) -> str:
		loc = f"{self.line if self.line is not None else '?'}:{self.column if self.column is not None else '?'}"
		return f"{self.filename}:{loc}: parse: {self.detail}"


@dataclass(eq=False)
class ImportPolicyViolation(GnoError):
	"""An import of an implementation module that matches no whitelist rule."""

	reason_code: ClassVar[str] = "import-not-permitted"

	import_path: str
	filename: str | None = None
	line: int | None = None

	def format_human(self) -> str:
		prefix = f"{self.filename}:{self.line}: " if self.filename and self.line else ""
		return f'{prefix}import "{self.import_path}" is not permitted: not in the whitelist'


@dataclass(eq=False)
class ImportRewriteFailure(GnoError):
	"""A planned import rewrite did not match any import node."""

	reason_code: ClassVar[str] = "import-rewrite"

	before: str
	after: str

	def format_human(self) -> str:
		return f'failed to replace the "{self.before}" package with "{self.after}"'


@dataclass(eq=False)
class CodeGenError(GnoError):
	reason_code: ClassVar[str] = "codegen"

	filename: str
	detail: str

	def format_human(self) -> str:
		return f"{self.filename}: codegen: {self.detail}"


@dataclass(eq=False)
class ImportCycleError(GnoError):
	"""A package was reached again while it was still being resolved."""

	reason_code: ClassVar[str] = "import-cycle"

	cycle: tuple[str, ...]

	def format_human(self) -> str:
		return "import cycle detected: " + " -> ".join(self.cycle)


@dataclass(eq=False)
class ToolchainError(GnoError):
	"""An external toolchain invocation failed; `output` is what it printed."""

	reason_code: ClassVar[str] = "toolchain"

	target: str
	output: str = ""
	detail: str = ""

	def format_human(self) -> str:
		head = f"{self.target}: {self.reason_code}"
		if self.detail:
			head += f": {self.detail}"
		out = self.output.strip()
		return f"{head}\n{out}" if out else head


@dataclass(eq=False)
class FormatCheckError(ToolchainError):
	reason_code: ClassVar[str] = "format-check"


@dataclass(eq=False)
class BuildError(ToolchainError):
	reason_code: ClassVar[str] = "build"


@dataclass(eq=False)
class ProcessStartError(ToolchainError):
	"""The external process could not be started at all."""

	reason_code: ClassVar[str] = "process-start"


@dataclass(eq=False)
class RunError(GnoError):
	"""
	The executed program produced a host diagnostic.

	`output` is the normalized diagnostic text, with temporary paths already
	replaced by the caller's logical path.
	"""

	reason_code: ClassVar[str] = "run"

	output: str

	def format_human(self) -> str:
		return self.output


@dataclass(eq=False)
class CleanupError(GnoError):
	"""
	Removing generated artifacts or a temporary directory failed.

	This is never folded into an AggregateError: the workspace is in an unknown
	state and the caller has to stop.
	"""

	reason_code: ClassVar[str] = "cleanup"

	path: str
	detail: str

	def format_human(self) -> str:
		return f"{self.path}: cleanup failed: {self.detail}"


@dataclass(eq=False)
class AggregateError(GnoError):
	"""Joins any number of errors without losing individual messages."""

	reason_code: ClassVar[str] = "aggregate"

	summary: str
	errors: list[Exception] = field(default_factory=list)

	@classmethod
	def collect(cls, summary: str, errors: Iterable[Exception]) -> "AggregateError | None":
		errs = list(errors)
		if not errs:
			return None
		return cls(summary=summary, errors=errs)

	def leaves(self) -> Iterator[Exception]:
		for err in self.errors:
			if isinstance(err, AggregateError):
				yield from err.leaves()
			else:
				yield err

	def format_human(self) -> str:
		lines = [self.summary]
		for err in self.errors:
			body = str(err).replace("\n", "\n\t  ")
			lines.append(f"\t- {body}")
		return "\n".join(lines)

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.summary,
			"errors": [
				e.to_dict() if isinstance(e, GnoError) else {"reason_code": "error", "message": str(e)}
				for e in self.errors
			],
		}


__all__ = [
	"AggregateError",
	"BuildError",
	"CleanupError",
	"CodeGenError",
	"FormatCheckError",
	"GnoError",
	"ImportCycleError",
	"ImportPolicyViolation",
	"ImportRewriteFailure",
	"ParseError",
	"ProcessStartError",
	"RunError",
	"ToolchainError",
]
