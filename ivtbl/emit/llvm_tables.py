# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Materialise merged tables as LLVM globals.

For every interleaved cloud a constant `[n x i8*]` global named
`<merged_table_prefix><root>` is created whose i-th element is the original
table element named by slot i of the cloud's descriptor. References that used
to point at an original address point become constant GEPs into the merged
global at the relocated position.

Original elements may be given as llvmlite constants, as preformatted IR
value text (what the record extractor yields), or as None for a null slot.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from llvmlite import ir  # type: ignore

from ivtbl.context import UnitContext
from ivtbl.core.errors import IncompleteLayoutData
from ivtbl.core.options import LayoutOptions
from ivtbl.layout.interleave import CloudInterleaving

logger = logging.getLogger(__name__)

I8_PTR = ir.IntType(8).as_pointer()
I64 = ir.IntType(64)


def merged_contents(cloud: CloudInterleaving, tables: Mapping[str, Sequence[Any]]) -> List[Any]:
	"""Original elements in merged order (representation left untouched)."""
	out: List[Any] = []
	for vtbl, idx in cloud.slots:
		table = tables.get(vtbl.class_name)
		if table is None:
			raise IncompleteLayoutData(
				"no original table contents for interleaved class",
				class_name=vtbl.class_name,
				order=vtbl.order,
				related=[cloud.root],
			)
		if not 0 <= idx < len(table):
			raise IncompleteLayoutData(
				f"index {idx} outside original table of {len(table)} elements",
				class_name=vtbl.class_name,
				order=vtbl.order,
			)
		out.append(table[idx])
	return out


class MergedTableEmitter:
	"""Create merged-table globals in an llvmlite module."""

	def __init__(self, options: LayoutOptions | None = None) -> None:
		self.options = options or LayoutOptions()

	def emit(
		self,
		module: ir.Module,
		cloud: CloudInterleaving,
		tables: Mapping[str, Sequence[Any]],
	) -> ir.GlobalVariable:
		elems = [self._as_constant(e) for e in merged_contents(cloud, tables)]
		arr_ty = ir.ArrayType(I8_PTR, len(elems))
		gv = ir.GlobalVariable(module, arr_ty, name=self.options.merged_table_name(cloud.root))
		gv.global_constant = True
		gv.align = self.options.word_width
		gv.initializer = ir.Constant(arr_ty, elems)
		logger.debug("emitted %s with %d elements", gv.name, len(elems))
		return gv

	def emit_unit(
		self,
		ctx: UnitContext,
		tables: Mapping[str, Sequence[Any]],
		module: Optional[ir.Module] = None,
	) -> Dict[str, ir.GlobalVariable]:
		"""Emit one global per interleaved root of `ctx`; returns root -> global."""
		if module is None:
			module = ir.Module(name="ivtbl_merged_tables")
		return {root: self.emit(module, cloud, tables) for root, cloud in ctx.interleavings.items()}

	def address_point_ref(self, gv: ir.GlobalVariable, position: int) -> ir.Constant:
		"""Constant `getelementptr (gv, 0, position)`."""
		return gv.gep([ir.Constant(I64, 0), ir.Constant(I64, position)])

	def relocated_address_point(
		self,
		ctx: UnitContext,
		globals_by_root: Mapping[str, ir.GlobalVariable],
		class_name: str,
		addr_pt: int,
	) -> ir.Constant:
		"""Replacement for a reference to `class_name`'s table at `addr_pt`."""
		root, position = ctx.relocate_address_point(class_name, addr_pt)
		return self.address_point_ref(globals_by_root[root], position)

	def _as_constant(self, elem: Any) -> ir.Constant:
		if elem is None:
			return ir.Constant(I8_PTR, None)
		if isinstance(elem, ir.Constant):
			return elem
		text = str(elem).strip()
		if text in ("null", "zeroinitializer", ""):
			return ir.Constant(I8_PTR, None)
		return ir.FormattedConstant(I8_PTR, text)


__all__ = ["MergedTableEmitter", "merged_contents", "I8_PTR"]
