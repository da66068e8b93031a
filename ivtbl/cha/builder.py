# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CHA stage: build the cloud forest from per-class layout records.

For every sub-table record an edge (parent, 0) -> (class, order) is added, or,
for a parentless primary sub-table, the class is registered as a root. Address
points and ranges are indexed per class by order. Classes whose compiled table
is absent from the unit are still indexed (abstract bases take part in offset
math) and listed as undefined.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ivtbl.cha.forest import CloudForest
from ivtbl.core.errors import MalformedRecord
from ivtbl.core.options import LayoutOptions
from ivtbl.core.records import ClassRecord
from ivtbl.core.vtbl import Range, VTblId

logger = logging.getLogger(__name__)


class CloudBuilder:
	"""
	Turn `ClassRecord`s into a `CloudForest`.

	`tables` maps class name -> original table contents; when given, classes
	missing from it are recorded as undefined. When omitted every recorded
	class is assumed to have a table.
	"""

	def __init__(self, options: LayoutOptions | None = None) -> None:
		self.options = options or LayoutOptions()

	def build(
		self,
		records: Iterable[ClassRecord],
		tables: Optional[Mapping[str, Any]] = None,
	) -> CloudForest:
		forest = CloudForest(sibling_order=self.options.sibling_order)
		count = 0
		for record in records:
			if record.class_name in forest.address_points:
				self._merge_duplicate(forest, record)
			else:
				self._add_record(forest, record)
			if tables is not None and record.class_name not in tables:
				forest.undefined[record.class_name] = None
			count += 1

		self._check_parents_known(forest)
		logger.debug(
			"built CHA forest: %d records, %d nodes, %d roots, %d undefined",
			count,
			len(forest.nodes),
			len(forest.roots),
			len(forest.undefined),
		)
		return forest

	def _add_record(self, forest: CloudForest, record: ClassRecord) -> None:
		name = record.class_name
		if not record.sub_tables:
			raise MalformedRecord("class record has no sub-tables", class_name=name)
		addr_pts: list[int] = []
		ranges: list[Range] = []
		for idx, sub in enumerate(record.sub_tables):
			vtbl = VTblId(name, sub.order)
			if sub.parent_name:
				forest.add_edge(VTblId(sub.parent_name, 0), vtbl)
			else:
				if sub.order != 0:
					raise MalformedRecord(
						"secondary sub-table declares no parent",
						class_name=name,
						order=sub.order,
					)
				forest.add_root(name)
			if sub.order != idx:
				raise MalformedRecord(
					f"sub-table orders must be contiguous from 0 (expected {idx}, got {sub.order})",
					class_name=name,
					order=sub.order,
				)
			forest.add_node(vtbl)
			addr_pts.append(sub.address_point)
			ranges.append(Range(sub.range_start, sub.range_end))
		forest.address_points[name] = addr_pts
		forest.ranges[name] = ranges
		if forest.is_root(name) and forest.parent_count(VTblId(name, 0)):
			raise MalformedRecord("primary sub-table is both a root and derived", class_name=name, order=0)

	def _merge_duplicate(self, forest: CloudForest, record: ClassRecord) -> None:
		"""
		A class reported twice contributes only extra parent edges; its layout
		must match the first report exactly.
		"""
		name = record.class_name
		known_aps = forest.address_points[name]
		known_ranges = forest.ranges[name]
		if len(record.sub_tables) != len(known_aps):
			raise MalformedRecord(
				f"class reported with {len(record.sub_tables)} sub-tables, previously {len(known_aps)}",
				class_name=name,
			)
		for idx, sub in enumerate(record.sub_tables):
			if sub.order != idx:
				raise MalformedRecord(
					f"sub-table orders must be contiguous from 0 (expected {idx}, got {sub.order})",
					class_name=name,
					order=sub.order,
				)
			if known_aps[idx] != sub.address_point or known_ranges[idx] != Range(sub.range_start, sub.range_end):
				raise MalformedRecord("conflicting layouts reported for the same sub-table", class_name=name, order=idx)
			vtbl = VTblId(name, idx)
			if sub.parent_name:
				forest.add_edge(VTblId(sub.parent_name, 0), vtbl)
			elif idx != 0:
				raise MalformedRecord("secondary sub-table declares no parent", class_name=name, order=idx)
			else:
				forest.add_root(name)
		if forest.is_root(name) and forest.parent_count(VTblId(name, 0)):
			raise MalformedRecord("primary sub-table is both a root and derived", class_name=name, order=0)

	def _check_parents_known(self, forest: CloudForest) -> None:
		for parent, kids in forest.children.items():
			if kids and parent.class_name not in forest.address_points:
				child = next(iter(kids))
				raise MalformedRecord(
					f"parent class '{parent.class_name}' has no layout record",
					class_name=child.class_name,
					order=child.order,
					related=[parent.class_name],
				)


__all__ = ["CloudBuilder"]
