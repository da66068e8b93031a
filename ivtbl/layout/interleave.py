# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Layout stage: interleave the sub-tables of one cloud into a single table.

The members of a cloud are taken in preorder (parents before children). The
merged sequence is built in two passes around the members' address points:

  - metadata (negative) pass: round r = 1, 2, ... collects, for every member
    that still has one, the element at address_point - r; each round's batch
    goes in front of everything collected so far, so the farthest elements end
    up first and the nearest ones sit right before the function pointers
  - function-pointer (positive) pass: round r = 0, 1, ... collects the element
    at address_point + r; each batch is appended at the back

Negative part followed by positive part is the cloud's merged table. Every
member contributes each element of its range exactly once, so the merged
length is the sum of the members' range lengths.

Members without a compiled table (undefined classes) are traversed but
contribute no slots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ivtbl.cha.forest import CloudForest
from ivtbl.cha.traversal import preorder
from ivtbl.core.errors import IncompleteLayoutData
from ivtbl.core.vtbl import VTblId

logger = logging.getLogger(__name__)

# (sub-table, original index inside its class table)
Slot = Tuple[VTblId, int]


@dataclass
class CloudInterleaving:
	"""
	Merged layout of one cloud.

	root: root class name
	members: defined sub-tables in preorder
	slots: merged sequence; slots[i] is the element placed at position i
	"""

	root: str
	members: List[VTblId] = field(default_factory=list)
	slots: List[Slot] = field(default_factory=list)

	def __len__(self) -> int:
		return len(self.slots)

	def descriptor(self) -> List[Tuple[str, int, int]]:
		"""(class name, order, original index) per merged position."""
		return [(v.class_name, v.order, idx) for v, idx in self.slots]


class Interleaver:
	"""Compute the merged element order of a cloud."""

	def interleave(self, forest: CloudForest, root: str) -> CloudInterleaving:
		if not forest.is_root(root):
			raise IncompleteLayoutData("interleaving requested for a non-root class", class_name=root)
		members: List[VTblId] = []
		for node in preorder(forest, VTblId(root, 0)):
			if not forest.has_layout(node):
				raise IncompleteLayoutData(
					"sub-table in cloud has no range/address point entry",
					class_name=node.class_name,
					order=node.order,
					related=[root],
				)
			if forest.is_defined(node):
				members.append(node)

		negative = self.fill_part(forest, members, positive=False)
		positive = self.fill_part(forest, members, positive=True)
		result = CloudInterleaving(root=root, members=members, slots=negative + positive)
		logger.debug(
			"interleaved cloud %s: %d members, %d slots (%d metadata)",
			root,
			len(members),
			len(result.slots),
			len(negative),
		)
		return result

	def fill_part(self, forest: CloudForest, members: List[VTblId], *, positive: bool) -> List[Slot]:
		"""
		Fill one side of the merged table.

		positive=False: indices below the address point, nearest round last
		positive=True: indices from the address point upwards, nearest round first
		"""
		pos: Dict[VTblId, int] = {}
		last: Dict[VTblId, int] = {}
		for n in members:
			ap = forest.address_point(n)
			rng = forest.range_of(n)
			pos[n] = ap if positive else ap - 1
			last[n] = rng.end if positive else rng.start
		step = 1 if positive else -1

		rounds: List[List[Slot]] = []
		while True:
			batch: List[Slot] = []
			for n in members:
				p = pos[n]
				if (p <= last[n]) if positive else (p >= last[n]):
					batch.append((n, p))
					pos[n] = p + step
			if not batch:
				break
			rounds.append(batch)

		if not positive:
			# Each farther round goes in front of the nearer ones.
			rounds.reverse()
		return [slot for batch in rounds for slot in batch]


__all__ = ["Interleaver", "CloudInterleaving", "Slot"]
