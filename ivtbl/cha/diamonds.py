# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CHA stage: remove diamonds created by virtual inheritance.

Interleaving needs a tree per root, but a sub-table reached through several
derivation paths is recorded under several parents. Nodes are visited in
topological order (parents first), so by the time a multi-parent node is
reached every candidate parent already has a single resolved ancestor chain.

Collapse rule, for a node with candidate parents P1..Pk:
  - walk each Pi's chain Pi -> parent(Pi) -> ... -> root
  - the surviving parent is the deepest node common to every chain, i.e. the
    least common ancestor; when one candidate is an ancestor of all others it
    is that candidate
  - all other parent edges are deleted; when the LCA is not itself a
    candidate an edge LCA -> node replaces them
  - ties cannot occur: two distinct nodes of one chain are never at the same
    depth, so the deepest common node is unique

When the chains share no node the candidates live in different clouds; the
node is left untouched and every cloud that reaches it is excluded.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Set

from ivtbl.cha.forest import CloudForest
from ivtbl.core.diagnostics import Diagnostic
from ivtbl.core.errors import AmbiguousDiamond, MalformedRecord
from ivtbl.core.vtbl import VTblId

logger = logging.getLogger(__name__)


@dataclass
class DiamondReport:
	"""
	Outcome of diamond resolution.

	resolved: node -> surviving parent, for every node that had several
	excluded_roots: roots whose cloud reaches an ambiguous node
	errors: one AmbiguousDiamond per ambiguous node
	"""

	resolved: Dict[VTblId, VTblId] = field(default_factory=dict)
	excluded_roots: Dict[str, None] = field(default_factory=dict)
	errors: List[AmbiguousDiamond] = field(default_factory=list)

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return [Diagnostic.from_error(err, phase="cha") for err in self.errors]


class _UnresolvedChain(Exception):
	"""An ancestor chain runs into a node that kept several parents."""


class DiamondResolver:
	"""Collapse multi-parent nodes of a `CloudForest` in place."""

	def resolve(self, forest: CloudForest) -> DiamondReport:
		report = DiamondReport()
		for node in self.topological_order(forest):
			if forest.parent_count(node) <= 1:
				continue
			candidates = forest.parents_of(node)
			try:
				lca = self.find_least_common_ancestor(forest, node, candidates)
			except AmbiguousDiamond as err:
				for root in err.roots:
					report.excluded_roots[root] = None
				report.errors.append(err)
				logger.debug("excluding clouds %s: %s", ", ".join(err.roots), err.message)
				continue
			for parent in candidates:
				if parent != lca:
					forest.remove_edge(parent, node)
			if lca not in candidates:
				forest.add_edge(lca, node)
			report.resolved[node] = lca
			logger.debug("diamond at %s: kept edge from %s (of %d candidates)", node, lca, len(candidates))
		return report

	def topological_order(self, forest: CloudForest) -> List[VTblId]:
		"""Nodes ordered parents-first; a leftover node means a parent cycle."""
		indegree: Dict[VTblId, int] = {n: forest.parent_count(n) for n in forest.nodes}
		queue = deque(n for n in forest.nodes if indegree[n] == 0)
		order: List[VTblId] = []
		while queue:
			node = queue.popleft()
			order.append(node)
			for child in forest.children_of(node):
				indegree[child] -= 1
				if indegree[child] == 0:
					queue.append(child)
		if len(order) != len(forest.nodes):
			stuck = next(n for n in forest.nodes if indegree[n] > 0)
			raise MalformedRecord(
				"inheritance cycle through sub-table",
				class_name=stuck.class_name,
				order=stuck.order,
			)
		return order

	def find_least_common_ancestor(
		self,
		forest: CloudForest,
		node: VTblId,
		candidates: List[VTblId],
	) -> VTblId:
		try:
			chains = [self._chain(forest, c) for c in candidates]
		except _UnresolvedChain:
			raise self._ambiguous(forest, node, candidates, "a candidate parent lies in an excluded cloud") from None
		common: Set[VTblId] = set(chains[0])
		for chain in chains[1:]:
			common &= set(chain)
		for anc in chains[0]:
			if anc in common:
				return anc
		raise self._ambiguous(forest, node, candidates, "candidate parents share no common ancestor")

	def _chain(self, forest: CloudForest, start: VTblId) -> List[VTblId]:
		chain = [start]
		cur = start
		while True:
			ps = forest.parents.get(cur)
			if not ps:
				return chain
			if len(ps) > 1:
				raise _UnresolvedChain(cur)
			cur = next(iter(ps))
			chain.append(cur)

	def _ambiguous(
		self,
		forest: CloudForest,
		node: VTblId,
		candidates: List[VTblId],
		why: str,
	) -> AmbiguousDiamond:
		roots = self.roots_above(forest, node)
		return AmbiguousDiamond(
			f"ambiguous diamond: {why}",
			class_name=node.class_name,
			order=node.order,
			related=[str(c) for c in candidates],
			roots=roots,
			notes=[f"excluded cloud rooted at {r}" for r in roots],
		)

	def roots_above(self, forest: CloudForest, node: VTblId) -> List[str]:
		"""Every root class whose cloud reaches `node` along any parent edge."""
		seen: Set[VTblId] = {node}
		stack = [node]
		roots: List[str] = []
		while stack:
			cur = stack.pop()
			ps = forest.parents_of(cur)
			if not ps and forest.is_root(cur.class_name) and cur.order == 0:
				roots.append(cur.class_name)
			for p in ps:
				if p not in seen:
					seen.add(p)
					stack.append(p)
		return sorted(roots)


__all__ = ["DiamondResolver", "DiamondReport"]
