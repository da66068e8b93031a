# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
ivtbl: interleaved virtual-table layouts for hardened dynamic dispatch.

Pipeline placement (one compilation unit at a time):
  records → CHA forest → diamond-free trees → verified trees
  → (cloud sizes, interleaved order) → layout index map → translation queries

Public API:
  - UnitContext: runs the whole pipeline for one unit and answers queries
  - LayoutOptions: tunables shared by every stage
  - ClassRecord / SubVTableRecord: input records
  - LayoutError and its kinds: structured failures
"""

from ivtbl.context import UnitContext
from ivtbl.core.errors import (
	AmbiguousDiamond,
	IncompleteLayoutData,
	LayoutError,
	MalformedRecord,
	UnmappedReference,
)
from ivtbl.core.options import LayoutOptions
from ivtbl.core.records import ClassRecord, SubVTableRecord
from ivtbl.core.vtbl import Range, VTblId

__all__ = [
	"UnitContext",
	"LayoutOptions",
	"ClassRecord",
	"SubVTableRecord",
	"VTblId",
	"Range",
	"LayoutError",
	"MalformedRecord",
	"AmbiguousDiamond",
	"IncompleteLayoutData",
	"UnmappedReference",
]
