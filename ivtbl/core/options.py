# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Layout pipeline options.

Options are plain data; the driver fills them from command-line flags and
library callers construct them directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SiblingOrder = Literal["declaration", "sorted"]


@dataclass(frozen=True)
class LayoutOptions:
	"""
	sibling_order: iteration order of a node's children during preorder
	  - "declaration": order in which the child edges were recorded
	  - "sorted": lexicographic (class name, order)
	word_width: bytes per table slot, for byte-offset references
	class_info_prefix: named-metadata prefix the extractor reads
	merged_table_prefix: symbol prefix of a materialised merged table
	vtable_names_only: drop records whose class name is not a vtable symbol
	"""

	sibling_order: SiblingOrder = "declaration"
	word_width: int = 8
	class_info_prefix: str = "sd.class_info"
	merged_table_prefix: str = "_SD"
	vtable_names_only: bool = True

	def __post_init__(self) -> None:
		if self.sibling_order not in ("declaration", "sorted"):
			raise ValueError(f"unknown sibling order '{self.sibling_order}'")
		if self.word_width <= 0:
			raise ValueError("word_width must be positive")

	def merged_table_name(self, root: str) -> str:
		return f"{self.merged_table_prefix}{root}"


__all__ = ["LayoutOptions", "SiblingOrder"]
