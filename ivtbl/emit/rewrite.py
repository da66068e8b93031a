# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reference rewriting sink.

Every instruction or constant that indexes an original table is described by
a `VTableReference`: which kind of access it is, which class (and sub-table)
it names, and the value currently encoded at the site. The rewriter turns
that value into the one that indexes the merged table.

Values are in the unit the site encodes them in:
  - vfptr, memptr_opt, rtti: table slots relative to the address point
  - vbase, vcall, dyncast: bytes relative to the address point
  - memptr, memptr_select: Itanium virtual member pointer (1 + byte offset)

Pipeline placement:
  UnitContext.run -> ReferenceRewriter.rewrite_all -> patched values
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from ivtbl.context import UnitContext
from ivtbl.core.errors import LayoutError, MalformedRecord, UnmappedReference
from ivtbl.core.vtbl import VTblId, is_vtable_name

logger = logging.getLogger(__name__)


class ReferenceKind(str, enum.Enum):
	VFPTR = "vfptr"
	VBASE = "vbase"
	MEMPTR_OPT = "memptr_opt"
	RTTI = "rtti"
	DYNCAST = "dyncast"
	VCALL = "vcall"
	MEMPTR = "memptr"
	MEMPTR_SELECT = "memptr_select"


@dataclass
class VTableReference:
	"""
	One site to patch.

	site: opaque identity of the instruction/constant (any hashable)
	value: encoded offset at the site (ignored for rtti/dyncast)
	order: sub-table order, used by vcall only
	relative: offset is relative to the address point (vfptr/memptr_opt)
	"""

	site: Any
	kind: ReferenceKind
	class_name: str
	value: int = 0
	order: int = 0
	relative: bool = True


@dataclass
class RewriteResult:
	"""New value(s) for a site. dyncast yields (rtti, offset_to_top)."""

	reference: VTableReference
	values: List[int] = field(default_factory=list)

	@property
	def value(self) -> int:
		return self.values[0]


class ReferenceRewriter:
	"""Answers each reference through a `UnitContext`; one rewrite per site."""

	def __init__(self, ctx: UnitContext) -> None:
		self.ctx = ctx
		self.word_width = ctx.options.word_width
		self._done: Set[Any] = set()

	def rewrite_all(self, references: Iterable[VTableReference]) -> List[RewriteResult]:
		# Snapshot before any answer is handed out; callers typically feed a
		# live use-list they are about to mutate.
		pending = list(references)
		logger.debug("rewriting %d references", len(pending))
		return [self.rewrite(ref) for ref in pending]

	def rewrite(self, ref: VTableReference) -> RewriteResult:
		if ref.site in self._done:
			raise UnmappedReference(
				f"site {ref.site!r} was already rewritten",
				class_name=ref.class_name,
			)
		if self.ctx.options.vtable_names_only and not is_vtable_name(ref.class_name):
			raise MalformedRecord(
				f"{ref.kind.value} reference names a non-vtable symbol",
				class_name=ref.class_name,
			)
		try:
			values = self._compute(ref)
		except LayoutError as err:
			err.notes.append(f"while rewriting {ref.kind.value} at {ref.site!r}")
			raise
		self._done.add(ref.site)
		return RewriteResult(ref, values)

	def reset(self) -> None:
		self._done.clear()

	# --- arithmetic -------------------------------------------------------

	def _compute(self, ref: VTableReference) -> List[int]:
		w = self.word_width
		cls = ref.class_name
		kind = ref.kind
		if kind in (ReferenceKind.VFPTR, ReferenceKind.MEMPTR_OPT):
			return [self.ctx.translate(cls, ref.value, ref.relative)]
		if kind is ReferenceKind.VBASE:
			return [self.ctx.translate(cls, self._slots(ref, ref.value)) * w]
		if kind is ReferenceKind.RTTI:
			return [self.ctx.translate(cls, -1)]
		if kind is ReferenceKind.DYNCAST:
			return [self.ctx.translate(cls, -1) * w, self.ctx.translate(cls, -2) * w]
		if kind is ReferenceKind.VCALL:
			vtbl = VTblId(cls, ref.order)
			return [self.ctx.translate_sub(vtbl, self._slots(ref, ref.value)) * w]
		if kind in (ReferenceKind.MEMPTR, ReferenceKind.MEMPTR_SELECT):
			new = self.ctx.translate(cls, self._slots(ref, ref.value - 1))
			return [new * w + 1]
		raise MalformedRecord(f"unknown reference kind {kind!r}", class_name=cls)

	def _slots(self, ref: VTableReference, byte_offset: int) -> int:
		if byte_offset % self.word_width:
			raise MalformedRecord(
				f"{ref.kind.value} offset {byte_offset} is not a multiple of {self.word_width}",
				class_name=ref.class_name,
			)
		return byte_offset // self.word_width


def results_by_site(results: Iterable[RewriteResult]) -> Dict[Any, List[int]]:
	return {r.reference.site: list(r.values) for r in results}


__all__ = [
	"ReferenceKind",
	"VTableReference",
	"RewriteResult",
	"ReferenceRewriter",
	"results_by_site",
]
