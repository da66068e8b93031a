# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Record extraction: turn a compiled module's class-layout metadata into
`ClassRecord`s plus original table contents.

Inputs:
  - textual LLVM IR (`RecordExtractor`, lark-based)
  - the equivalent JSON document (`load_unit_json`)
"""

from .metadata import ExtractedUnit, MdRef, RecordExtractor
from .jsonio import load_unit_json, unit_from_json, unit_to_json

__all__ = [
	"ExtractedUnit",
	"MdRef",
	"RecordExtractor",
	"load_unit_json",
	"unit_from_json",
	"unit_to_json",
]
