# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CHA package: class hierarchy analysis over sub-table layout records.

Pipeline placement:
  records → CloudBuilder → DiamondResolver → CloudVerifier → CloudSizeCalculator
  → layout (interleaving)

Public API:
  - CloudForest: arena of sub-table nodes, edges, ranges and address points
  - CloudBuilder / DiamondResolver / CloudVerifier / CloudSizeCalculator
  - preorder / first_defined_descendant: iterative traversals
"""

from .forest import CloudForest
from .builder import CloudBuilder
from .diamonds import DiamondReport, DiamondResolver
from .verify import CloudVerifier
from .sizes import CloudSizeCalculator
from .traversal import first_defined_descendant, preorder

__all__ = [
	"CloudForest",
	"CloudBuilder",
	"DiamondResolver",
	"DiamondReport",
	"CloudVerifier",
	"CloudSizeCalculator",
	"preorder",
	"first_defined_descendant",
]
