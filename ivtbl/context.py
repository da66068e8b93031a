# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Per-unit analysis context.

`UnitContext` owns every map derived from one compilation unit's records:
the forest, diamond report, cloud membership, cloud sizes, interleavings and
the layout index translator. It is built fresh per unit, queried by the
rewrite sink, then cleared; nothing survives from one unit to the next.

Typical use:

	with UnitContext(options) as ctx:
		ctx.run(records, tables)
		new_off = ctx.translate("_ZTV1A", 2)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ivtbl.cha.builder import CloudBuilder
from ivtbl.cha.diamonds import DiamondReport, DiamondResolver
from ivtbl.cha.forest import CloudForest
from ivtbl.cha.sizes import CloudSizeCalculator
from ivtbl.cha.verify import CloudVerifier
from ivtbl.core.diagnostics import Diagnostic
from ivtbl.core.errors import UnmappedReference
from ivtbl.core.options import LayoutOptions
from ivtbl.core.records import ClassRecord
from ivtbl.core.vtbl import VTblId
from ivtbl.layout.interleave import CloudInterleaving, Interleaver
from ivtbl.layout.translate import LayoutIndexTranslator

logger = logging.getLogger(__name__)


class UnitContext:
	"""Runs the layout pipeline for one unit and answers translation queries."""

	def __init__(self, options: LayoutOptions | None = None) -> None:
		self.options = options or LayoutOptions()
		self.forest: Optional[CloudForest] = None
		self.report: DiamondReport = DiamondReport()
		self.membership: Dict[VTblId, str] = {}
		self.cloud_sizes: Dict[str, int] = {}
		self.interleavings: Dict[str, CloudInterleaving] = {}
		self.translator: Optional[LayoutIndexTranslator] = None

	def __enter__(self) -> "UnitContext":
		return self

	def __exit__(self, *exc: object) -> None:
		self.clear()

	def run(self, records: Iterable[ClassRecord], tables: Optional[Mapping[str, Any]] = None) -> "UnitContext":
		"""
		Build → resolve → verify → size → interleave → index.

		Any fatal LayoutError propagates and leaves the context cleared.
		Ambiguous diamonds only exclude their clouds; see `diagnostics`.
		"""
		self.clear()
		try:
			forest = CloudBuilder(self.options).build(records, tables)
			self.forest = forest
			self.report = DiamondResolver().resolve(forest)
			excluded = list(self.report.excluded_roots)
			self.membership = CloudVerifier().verify(forest, excluded)
			self.cloud_sizes = CloudSizeCalculator().compute(forest, excluded)
			interleaver = Interleaver()
			for root in forest.roots:
				if root in self.report.excluded_roots:
					continue
				self.interleavings[root] = interleaver.interleave(forest, root)
			self.translator = LayoutIndexTranslator(forest, self.interleavings, self.membership, excluded)
		except Exception:
			self.clear()
			raise
		logger.debug(
			"unit analysed: %d clouds interleaved, %d excluded",
			len(self.interleavings),
			len(self.report.excluded_roots),
		)
		return self

	def clear(self) -> None:
		if self.forest is not None:
			self.forest.clear()
		self.forest = None
		self.report = DiamondReport()
		self.membership = {}
		self.cloud_sizes = {}
		self.interleavings = {}
		self.translator = None
		logger.debug("cleared unit analysis results")

	# --- results ----------------------------------------------------------

	@property
	def roots(self) -> List[str]:
		return list(self.forest.roots) if self.forest is not None else []

	@property
	def undefined_classes(self) -> List[str]:
		return list(self.forest.undefined) if self.forest is not None else []

	@property
	def excluded_roots(self) -> List[str]:
		return list(self.report.excluded_roots)

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return self.report.diagnostics

	def cloud_size(self, class_name: str) -> int:
		size = self.cloud_sizes.get(class_name)
		if size is None:
			raise UnmappedReference("no cloud size for class", class_name=class_name)
		return size

	def descriptor(self, root: str) -> List[Tuple[str, int, int]]:
		cloud = self.interleavings.get(root)
		if cloud is None:
			raise UnmappedReference("no merged table for root", class_name=root)
		return cloud.descriptor()

	def descriptors(self) -> Dict[str, List[Tuple[str, int, int]]]:
		return {root: cloud.descriptor() for root, cloud in self.interleavings.items()}

	def layout_index_map(self, vtbl: VTblId) -> Dict[int, int]:
		return dict(self._translator().index_map.get(vtbl, {}))

	# --- queries ----------------------------------------------------------

	def translate(self, class_name: str, offset: int, relative: bool = True) -> int:
		return self._translator().translate(class_name, offset, relative)

	def translate_sub(self, vtbl: VTblId, offset: int, relative: bool = True) -> int:
		return self._translator().translate_sub(vtbl, offset, relative)

	def relocate_address_point(self, class_name: str, addr_pt: int) -> Tuple[str, int]:
		return self._translator().relocate_address_point(class_name, addr_pt)

	def cloud_of(self, vtbl: VTblId) -> Optional[str]:
		return self.membership.get(vtbl)

	def address_point(self, class_name: str, order: int = 0) -> int:
		forest = self._forest()
		if not forest.has_layout(VTblId(class_name, order)):
			raise UnmappedReference("no address point recorded", class_name=class_name, order=order)
		return forest.address_point(VTblId(class_name, order))

	def address_point_order(self, class_name: str, addr_pt: int) -> Optional[int]:
		return self._forest().address_point_order(class_name, addr_pt)

	def num_address_points(self, class_name: str) -> int:
		return self._forest().num_address_points(class_name)

	def is_undefined(self, class_name: str) -> bool:
		return self._forest().is_undefined(class_name)

	def knows_about(self, vtbl: VTblId) -> bool:
		return self.forest is not None and self.forest.knows_about(vtbl)

	def _forest(self) -> CloudForest:
		if self.forest is None:
			raise UnmappedReference("no unit has been analysed")
		return self.forest

	def _translator(self) -> LayoutIndexTranslator:
		if self.translator is None:
			raise UnmappedReference("no unit has been analysed")
		return self.translator


__all__ = ["UnitContext"]
