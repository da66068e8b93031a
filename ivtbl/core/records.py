# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Input records, one per class with compiled layout metadata.

These are the typed shape of what the record extractor reads out of the
compiler's per-class metadata; the layout pipeline consumes nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from .vtbl import Range, VTblId


@dataclass(frozen=True)
class SubVTableRecord:
	"""
	Layout of one sub-table inside a class's compiled table.

	order: position of the sub-table in the class table (0 = primary)
	parent_name: class whose primary sub-table this one derives from (None for roots)
	range_start/range_end: inclusive bounds in the class's original table
	address_point: index an object's table pointer actually holds
	"""

	order: int
	parent_name: Optional[str]
	range_start: int
	range_end: int
	address_point: int

	@property
	def range(self) -> Range:
		return Range(self.range_start, self.range_end)

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "SubVTableRecord":
		parent = data.get("parentName")
		return cls(
			order=int(data["order"]),
			parent_name=parent or None,
			range_start=int(data["rangeStart"]),
			range_end=int(data["rangeEnd"]),
			address_point=int(data["addressPoint"]),
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"order": self.order,
			"parentName": self.parent_name,
			"rangeStart": self.range_start,
			"rangeEnd": self.range_end,
			"addressPoint": self.address_point,
		}


@dataclass(frozen=True)
class ClassRecord:
	"""All sub-table records of one class, ordered by `order`."""

	class_name: str
	sub_tables: List[SubVTableRecord] = field(default_factory=list)

	def vtbl(self, order: int) -> VTblId:
		return VTblId(self.class_name, order)

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "ClassRecord":
		return cls(
			class_name=str(data["className"]),
			sub_tables=[SubVTableRecord.from_dict(sub) for sub in data.get("subTables", [])],
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"className": self.class_name,
			"subTables": [sub.to_dict() for sub in self.sub_tables],
		}


__all__ = ["SubVTableRecord", "ClassRecord"]
