# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CHA stage: sanity checks on resolved clouds.

Run after diamond resolution. Well-formed resolved output satisfies every
check by construction, so a failure here is an analysis defect and aborts the
unit with IncompleteLayoutData.

Checks, per cloud that was not excluded:
  - the root's primary sub-table has no parent; every other node has exactly one
  - the cloud is a tree: no node is reached twice
  - every node carries a range and address point, with start <= ap <= end
Across the unit:
  - no node belongs to two clouds
  - every node belongs to some cloud (possibly an excluded one)
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable

from ivtbl.cha.forest import CloudForest
from ivtbl.core.errors import IncompleteLayoutData
from ivtbl.core.vtbl import VTblId

logger = logging.getLogger(__name__)


class CloudVerifier:
	"""Verify resolved clouds and compute node -> root membership."""

	def verify(self, forest: CloudForest, excluded_roots: Iterable[str] = ()) -> Dict[VTblId, str]:
		excluded = set(excluded_roots)
		owner: Dict[VTblId, str] = {}
		for root in forest.root_nodes():
			if root.class_name in excluded:
				continue
			self._verify_cloud(forest, root, owner)

		# Nodes outside every verified cloud must hang below an excluded root.
		shadow: set[VTblId] = set()
		for root in forest.root_nodes():
			if root.class_name in excluded:
				self._collect(forest, root, shadow)
		for node in forest.nodes:
			if node not in owner and node not in shadow:
				raise IncompleteLayoutData(
					"sub-table is not reachable from any root",
					class_name=node.class_name,
					order=node.order,
				)
		logger.debug("verified %d clouds covering %d nodes", len(forest.roots) - len(excluded), len(owner))
		return owner

	def _verify_cloud(self, forest: CloudForest, root: VTblId, owner: Dict[VTblId, str]) -> None:
		if forest.parent_count(root) != 0:
			raise IncompleteLayoutData("root sub-table has a parent", class_name=root.class_name, order=0)
		stack = [root]
		while stack:
			node = stack.pop()
			prev = owner.get(node)
			if prev is not None:
				raise IncompleteLayoutData(
					f"sub-table reached twice (already in cloud {prev})",
					class_name=node.class_name,
					order=node.order,
					related=[root.class_name],
				)
			owner[node] = root.class_name
			if node != root and forest.parent_count(node) != 1:
				raise IncompleteLayoutData(
					f"sub-table has {forest.parent_count(node)} parents after resolution",
					class_name=node.class_name,
					order=node.order,
					related=[str(p) for p in forest.parents_of(node)],
				)
			self._verify_layout(forest, node)
			stack.extend(forest.children_of(node))

	def _verify_layout(self, forest: CloudForest, node: VTblId) -> None:
		if not forest.has_layout(node):
			raise IncompleteLayoutData(
				"sub-table has no range/address point entry",
				class_name=node.class_name,
				order=node.order,
			)
		rng = forest.range_of(node)
		ap = forest.address_point(node)
		if not (rng.start <= ap <= rng.end):
			raise IncompleteLayoutData(
				f"address point {ap} outside range [{rng.start}, {rng.end}]",
				class_name=node.class_name,
				order=node.order,
			)

	def _collect(self, forest: CloudForest, root: VTblId, into: set[VTblId]) -> None:
		stack = [root]
		while stack:
			node = stack.pop()
			if node in into:
				continue
			into.add(node)
			stack.extend(forest.children_of(node))


__all__ = ["CloudVerifier"]
