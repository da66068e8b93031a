# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Sub-table identities and ranges.

A class's compiled table is a concatenation of sub-tables, one per base-class
layout embedded in the object. `VTblId(class_name, order)` names one of them;
order 0 is always the class's primary sub-table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class VTblId(NamedTuple):
	"""Stable identity of a sub-table: (class name, order inside the class table)."""

	class_name: str
	order: int

	def __str__(self) -> str:
		return f"{self.class_name}[{self.order}]"


@dataclass(frozen=True)
class Range:
	"""Inclusive element-index bounds of a sub-table in its class's original table."""

	start: int
	end: int

	def __contains__(self, index: object) -> bool:
		return isinstance(index, int) and self.start <= index <= self.end

	def __len__(self) -> int:
		return self.end - self.start + 1 if self.end >= self.start else 0

	def indices(self) -> range:
		return range(self.start, self.end + 1)


def is_vtable_name(name: str) -> bool:
	"""
	True for Itanium-mangled vtable / construction-vtable symbols (`_ZTV`, `_ZTC`)
	outside the `std` namespace and the C++ ABI runtime.
	"""
	if len(name) <= 4:
		return False
	if not (name.startswith("_ZTV") or name.startswith("_ZTC")):
		return False
	rest = name[4:]
	return not rest.startswith("S") and not rest.startswith("N10__cxxabiv")


__all__ = ["VTblId", "Range", "is_vtable_name"]
