# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CHA stage: cloud sizes.

CloudSize[cls] is the number of sub-table nodes in the subtree of (cls, 0),
itself included. For a root this is the whole cloud and is the width of the
valid-range check a consumer emits for table pointers of that hierarchy; the
same count is published for every primary sub-table met on the way.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable

from ivtbl.cha.forest import CloudForest
from ivtbl.core.errors import IncompleteLayoutData
from ivtbl.core.vtbl import VTblId

logger = logging.getLogger(__name__)


class CloudSizeCalculator:
	"""Count subtree sizes with a post-order walk; each node is visited once."""

	def compute(self, forest: CloudForest, excluded_roots: Iterable[str] = ()) -> Dict[str, int]:
		excluded = set(excluded_roots)
		counts: Dict[VTblId, int] = {}
		sizes: Dict[str, int] = {}
		for root in forest.root_nodes():
			if root.class_name in excluded:
				continue
			self._count(forest, root, counts, sizes)
		logger.debug("cloud sizes: %s", {r: sizes[r] for r in forest.roots if r in sizes})
		return sizes

	def _count(
		self,
		forest: CloudForest,
		root: VTblId,
		counts: Dict[VTblId, int],
		sizes: Dict[str, int],
	) -> int:
		# (node, children_done) pairs; a node is summed once all children are.
		stack: list[tuple[VTblId, bool]] = [(root, False)]
		while stack:
			node, done = stack.pop()
			if done:
				total = 1 + sum(counts[c] for c in forest.children_of(node))
				counts[node] = total
				if node.order == 0:
					if node.class_name in sizes:
						raise IncompleteLayoutData("cloud size computed twice", class_name=node.class_name)
					sizes[node.class_name] = total
				continue
			if node in counts:
				raise IncompleteLayoutData(
					"sub-table counted in two clouds",
					class_name=node.class_name,
					order=node.order,
				)
			stack.append((node, True))
			for child in forest.children_of(node):
				stack.append((child, False))
		return counts[root]


__all__ = ["CloudSizeCalculator"]
