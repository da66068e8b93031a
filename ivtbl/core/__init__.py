# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Shared data structures for the layout pipeline: sub-table identities, input
records, errors, diagnostics and options.
"""

from .vtbl import Range, VTblId, is_vtable_name
from .records import ClassRecord, SubVTableRecord
from .errors import (
	AmbiguousDiamond,
	IncompleteLayoutData,
	LayoutError,
	MalformedRecord,
	UnmappedReference,
)
from .diagnostics import Diagnostic
from .options import LayoutOptions

__all__ = [
	"Range",
	"VTblId",
	"is_vtable_name",
	"ClassRecord",
	"SubVTableRecord",
	"LayoutError",
	"MalformedRecord",
	"AmbiguousDiamond",
	"IncompleteLayoutData",
	"UnmappedReference",
	"Diagnostic",
	"LayoutOptions",
]
