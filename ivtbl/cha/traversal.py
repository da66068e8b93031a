# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Iterative traversals over a resolved cloud.

Hierarchies can be deep or very wide, so traversals use an explicit stack and
a visited set rather than recursion.
"""

from __future__ import annotations

from typing import List, Optional, Set

from ivtbl.cha.forest import CloudForest
from ivtbl.core.vtbl import VTblId


def preorder(forest: CloudForest, root: VTblId, visited: Optional[Set[VTblId]] = None) -> List[VTblId]:
	"""
	Parents before children; siblings in the forest's sibling order.

	A node already in `visited` is not entered again (its subtree is skipped).
	"""
	seen = visited if visited is not None else set()
	out: List[VTblId] = []
	stack = [root]
	while stack:
		node = stack.pop()
		if node in seen:
			continue
		seen.add(node)
		out.append(node)
		# Reverse so the first child is popped first.
		stack.extend(reversed(forest.children_of(node)))
	return out


def first_defined_descendant(forest: CloudForest, vtbl: VTblId) -> Optional[VTblId]:
	"""
	Closest descendant with a compiled table, breadth-first so direct children
	win over grandchildren; siblings in the forest's sibling order.
	"""
	seen: Set[VTblId] = {vtbl}
	frontier = forest.children_of(vtbl)
	while frontier:
		nxt: List[VTblId] = []
		for node in frontier:
			if node in seen:
				continue
			seen.add(node)
			if forest.is_defined(node):
				return node
			nxt.extend(forest.children_of(node))
		frontier = nxt
	return None


__all__ = ["preorder", "first_defined_descendant"]
