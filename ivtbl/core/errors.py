# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Structured layout errors.

Every failure of the layout pipeline is a `LayoutError` carrying a stable
reason code plus the class/relationship it concerns, so the driver can render
it as a diagnostic without string parsing.

Scope of each kind:
  - MalformedRecord: corrupt input; aborts the unit
  - AmbiguousDiamond: one cloud is excluded; the unit continues
  - IncompleteLayoutData: internal invariant violated; aborts the unit
  - UnmappedReference: a translation query the built clouds cannot answer
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence


class LayoutError(Exception):
	"""Base class for all layout pipeline failures."""

	reason_code = "layout-error"

	def __init__(
		self,
		message: str,
		*,
		class_name: Optional[str] = None,
		order: Optional[int] = None,
		related: Iterable[str] = (),
		notes: Sequence[str] = (),
	) -> None:
		super().__init__(message)
		self.message = message
		self.class_name = class_name
		self.order = order
		self.related = tuple(related)
		self.notes = list(notes)

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"class_name": self.class_name,
			"order": self.order,
			"related": list(self.related),
			"notes": list(self.notes),
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.class_name is not None:
			where = self.class_name if self.order is None else f"{self.class_name}[{self.order}]"
			parts.append(f"class: {where}")
		if self.related:
			parts.append("related: " + ", ".join(self.related))
		for note in self.notes:
			parts.append(f"note: {note}")
		return "\n".join(parts)


class MalformedRecord(LayoutError):
	"""Input records are inconsistent (missing parent, order gaps, cycles, ...)."""

	reason_code = "malformed-record"


class AmbiguousDiamond(LayoutError):
	"""A sub-table's candidate parents share no common ancestor."""

	reason_code = "ambiguous-diamond"

	def __init__(self, message: str, *, roots: Iterable[str] = (), **kwargs: Any) -> None:
		super().__init__(message, **kwargs)
		self.roots = tuple(roots)

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out["roots"] = list(self.roots)
		return out


class IncompleteLayoutData(LayoutError):
	"""A resolved cloud violates a structural invariant (analysis defect)."""

	reason_code = "incomplete-layout-data"


class UnmappedReference(LayoutError):
	"""A translation query names a class/offset the built layouts cannot map."""

	reason_code = "unmapped-reference"


__all__ = [
	"LayoutError",
	"MalformedRecord",
	"AmbiguousDiamond",
	"IncompleteLayoutData",
	"UnmappedReference",
]
