# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Layout stage: translate original table indices into merged-table positions.

The layout index map records, for every interleaved sub-table, where each
element of its original range landed in the merged table. Queries come from
the rewrite sink, once per reference it patches:

  translate(cls, offset, relative=True)
    offset is relative to the address point of (cls, 0); the answer is the
    distance between the element and the address point in the merged table
  translate(cls, offset, relative=False)
    offset is an absolute index in cls's original table; the answer is the
    absolute merged position

A class without a compiled table borrows the layout of its closest defined
descendant; its function-pointer prefix is shared, so only relative,
non-negative offsets are meaningful there.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ivtbl.cha.forest import CloudForest
from ivtbl.cha.traversal import first_defined_descendant
from ivtbl.core.errors import IncompleteLayoutData, UnmappedReference
from ivtbl.core.vtbl import VTblId
from ivtbl.layout.interleave import CloudInterleaving

logger = logging.getLogger(__name__)


class LayoutIndexTranslator:
	"""
	Old-index -> new-index map for one unit's interleaved clouds.

	forest: the resolved forest the interleavings were computed from
	interleavings: root -> CloudInterleaving
	membership: node -> root of its cloud, for every verified cloud
	excluded_roots: roots whose clouds were dropped by diamond resolution
	"""

	def __init__(
		self,
		forest: CloudForest,
		interleavings: Mapping[str, CloudInterleaving],
		membership: Mapping[VTblId, str],
		excluded_roots: Iterable[str] = (),
	) -> None:
		self.forest = forest
		self.membership = dict(membership)
		self.excluded_roots = set(excluded_roots)
		self.index_map: Dict[VTblId, Dict[int, int]] = {}
		for root, cloud in interleavings.items():
			self._index_cloud(root, cloud)

	def _index_cloud(self, root: str, cloud: CloudInterleaving) -> None:
		for pos, (vtbl, idx) in enumerate(cloud.slots):
			self.index_map.setdefault(vtbl, {})[idx] = pos
		# The map must be total over every member's declared range.
		for vtbl in cloud.members:
			rng = self.forest.range_of(vtbl)
			mapped = self.index_map.get(vtbl, {})
			if len(mapped) != len(rng) or any(i not in mapped for i in rng.indices()):
				raise IncompleteLayoutData(
					f"layout index map does not cover range [{rng.start}, {rng.end}]",
					class_name=vtbl.class_name,
					order=vtbl.order,
					related=[root],
				)
		logger.debug("indexed cloud %s: %d sub-tables", root, len(cloud.members))

	# --- queries ----------------------------------------------------------

	def translate(self, class_name: str, offset: int, relative: bool = True) -> int:
		"""Map an offset into (class_name, 0)'s table onto the merged table."""
		target = VTblId(class_name, 0)
		self._check_known(target)
		if target not in self.index_map:
			if not relative or offset < 0:
				raise UnmappedReference(
					"class has no compiled table; only relative function-pointer offsets can be mapped",
					class_name=class_name,
					notes=[f"offset {offset} ({'relative' if relative else 'absolute'})"],
				)
			substitute = first_defined_descendant(self.forest, target)
			if substitute is None:
				raise UnmappedReference(
					"class has no compiled table and no defined descendant",
					class_name=class_name,
				)
			logger.debug("translating %s through descendant %s", class_name, substitute)
			target = substitute
		return self.translate_sub(target, offset, relative)

	def translate_sub(self, vtbl: VTblId, offset: int, relative: bool = True) -> int:
		"""Map an offset into a specific (possibly secondary) sub-table."""
		self._check_known(vtbl)
		new_inds = self.index_map.get(vtbl)
		if new_inds is None:
			raise UnmappedReference(
				"sub-table has no merged layout",
				class_name=vtbl.class_name,
				order=vtbl.order,
			)
		rng = self.forest.range_of(vtbl)
		if relative:
			addr_pt = self.forest.address_point(vtbl)
			if not (offset >= 0 or addr_pt >= -offset):
				raise UnmappedReference(
					f"relative offset {offset} reaches before the table start (address point {addr_pt})",
					class_name=vtbl.class_name,
					order=vtbl.order,
				)
			full_index = addr_pt + offset
			if full_index not in rng:
				raise UnmappedReference(
					f"relative offset {offset} leaves range [{rng.start}, {rng.end}]",
					class_name=vtbl.class_name,
					order=vtbl.order,
				)
			return new_inds[full_index] - new_inds[addr_pt]
		if offset not in rng:
			raise UnmappedReference(
				f"index {offset} outside range [{rng.start}, {rng.end}]",
				class_name=vtbl.class_name,
				order=vtbl.order,
			)
		return new_inds[offset]

	def relocate_address_point(self, class_name: str, addr_pt: int) -> Tuple[str, int]:
		"""
		Merged position of an original address point of class_name.

		Returns (root of the merged table, position inside it).
		"""
		order = self.forest.address_point_order(class_name, addr_pt)
		if order is None:
			raise UnmappedReference(f"{addr_pt} is not an address point", class_name=class_name)
		vtbl = VTblId(class_name, order)
		self._check_known(vtbl)
		new_inds = self.index_map.get(vtbl)
		if new_inds is None:
			raise UnmappedReference("sub-table has no merged layout", class_name=class_name, order=order)
		return self.membership[vtbl], new_inds[addr_pt]

	def cloud_of(self, vtbl: VTblId) -> Optional[str]:
		return self.membership.get(vtbl)

	def has_layout(self, vtbl: VTblId) -> bool:
		return vtbl in self.index_map

	def _check_known(self, vtbl: VTblId) -> None:
		if not self.forest.knows_about(vtbl):
			raise UnmappedReference("class is unknown to the built clouds", class_name=vtbl.class_name, order=vtbl.order)
		if vtbl not in self.membership:
			raise UnmappedReference(
				"class belongs to a cloud excluded from interleaving",
				class_name=vtbl.class_name,
				order=vtbl.order,
				notes=[f"excluded roots: {', '.join(sorted(self.excluded_roots)) or '-'}"],
			)


__all__ = ["LayoutIndexTranslator"]
