# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostic structure for layout passes and the driver.

Fatal problems travel as `LayoutError` exceptions; problems a unit survives
(an excluded cloud) are collected as `Diagnostic` values instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import LayoutError


@dataclass
class Diagnostic:
	"""Represents a layout diagnostic (error/warning/etc.)."""

	message: str
	code: str | None = None
	# Pipeline phase that produced the diagnostic: "extract", "cha", "layout",
	# "translate" or "rewrite".
	phase: str | None = None
	severity: str = "error"
	class_name: Optional[str] = None
	notes: list[str] = field(default_factory=list)

	@classmethod
	def from_error(cls, err: LayoutError, *, phase: str | None = None, severity: str = "error") -> "Diagnostic":
		notes = list(err.notes)
		if err.related:
			notes.insert(0, "related: " + ", ".join(err.related))
		return cls(
			message=err.message,
			code=err.reason_code,
			phase=phase,
			severity=severity,
			class_name=err.class_name,
			notes=notes,
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"class_name": self.class_name,
			"notes": list(self.notes),
		}


__all__ = ["Diagnostic"]
