# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Emit stage: merged-table materialisation and reference rewriting.

Public API:
  - MergedTableEmitter / merged_contents: build `_SD<root>` globals (llvmlite)
  - ReferenceRewriter / VTableReference / ReferenceKind: patch values for
    sites that index original tables
"""

from ivtbl.emit.llvm_tables import MergedTableEmitter, merged_contents
from ivtbl.emit.rewrite import (
	ReferenceKind,
	ReferenceRewriter,
	RewriteResult,
	VTableReference,
	results_by_site,
)

__all__ = [
	"MergedTableEmitter",
	"merged_contents",
	"ReferenceKind",
	"ReferenceRewriter",
	"RewriteResult",
	"VTableReference",
	"results_by_site",
]
