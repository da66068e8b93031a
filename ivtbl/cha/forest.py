# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CHA forest: the arena holding every sub-table node of one compilation unit.

Nodes are addressed by `VTblId`; edges are kept as two ordered multimaps
(parent -> children and child -> parents) so that a node recorded under
several parents before diamond resolution is explicit, and resolution only
has to delete entries. Insertion order is preserved everywhere so that a
rebuild from identically ordered records is bit-identical.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from ivtbl.core.options import SiblingOrder
from ivtbl.core.vtbl import Range, VTblId


@dataclass
class CloudForest:
	"""
	children[p]: ordered set of child nodes recorded under parent p
	parents[c]: ordered set of parent nodes recorded for child c
	roots: root class names, in record order
	address_points[cls][order] / ranges[cls][order]: per-class layout tables
	undefined: classes whose compiled table is absent from the unit
	"""

	sibling_order: SiblingOrder = "declaration"
	nodes: Dict[VTblId, None] = field(default_factory=dict)
	children: Dict[VTblId, Dict[VTblId, None]] = field(default_factory=dict)
	parents: Dict[VTblId, Dict[VTblId, None]] = field(default_factory=dict)
	roots: Dict[str, None] = field(default_factory=dict)
	address_points: Dict[str, List[int]] = field(default_factory=dict)
	ranges: Dict[str, List[Range]] = field(default_factory=dict)
	undefined: Dict[str, None] = field(default_factory=dict)

	# --- construction -----------------------------------------------------

	def add_node(self, vtbl: VTblId) -> None:
		self.nodes.setdefault(vtbl, None)
		self.children.setdefault(vtbl, {})
		self.parents.setdefault(vtbl, {})

	def add_edge(self, parent: VTblId, child: VTblId) -> None:
		self.add_node(parent)
		self.add_node(child)
		self.children[parent][child] = None
		self.parents[child][parent] = None

	def remove_edge(self, parent: VTblId, child: VTblId) -> None:
		self.children[parent].pop(child, None)
		self.parents[child].pop(parent, None)

	def add_root(self, class_name: str) -> None:
		self.roots[class_name] = None
		self.add_node(VTblId(class_name, 0))

	# --- queries ----------------------------------------------------------

	def children_of(self, vtbl: VTblId) -> List[VTblId]:
		kids = list(self.children.get(vtbl, ()))
		if self.sibling_order == "sorted":
			kids.sort()
		return kids

	def parents_of(self, vtbl: VTblId) -> List[VTblId]:
		return list(self.parents.get(vtbl, ()))

	def parent_count(self, vtbl: VTblId) -> int:
		return len(self.parents.get(vtbl, ()))

	def is_root(self, class_name: str) -> bool:
		return class_name in self.roots

	def knows_about(self, vtbl: VTblId) -> bool:
		return vtbl in self.nodes

	def is_undefined(self, class_name: str) -> bool:
		return class_name in self.undefined

	def is_defined(self, vtbl: VTblId) -> bool:
		return vtbl.class_name in self.address_points and vtbl.class_name not in self.undefined

	def has_layout(self, vtbl: VTblId) -> bool:
		return (
			0 <= vtbl.order < len(self.ranges.get(vtbl.class_name, ()))
			and vtbl.order < len(self.address_points.get(vtbl.class_name, ()))
		)

	def address_point(self, vtbl: VTblId) -> int:
		return self.address_points[vtbl.class_name][vtbl.order]

	def range_of(self, vtbl: VTblId) -> Range:
		return self.ranges[vtbl.class_name][vtbl.order]

	def num_address_points(self, class_name: str) -> int:
		return len(self.address_points.get(class_name, ()))

	def address_point_order(self, class_name: str, addr_pt: int) -> Optional[int]:
		"""Order of the sub-table whose address point is `addr_pt`, or None."""
		for order, ap in enumerate(self.address_points.get(class_name, ())):
			if ap == addr_pt:
				return order
		return None

	def root_nodes(self) -> Iterator[VTblId]:
		for name in self.roots:
			yield VTblId(name, 0)

	def clear(self) -> None:
		self.nodes.clear()
		self.children.clear()
		self.parents.clear()
		self.roots.clear()
		self.address_points.clear()
		self.ranges.clear()
		self.undefined.clear()


__all__ = ["CloudForest"]
