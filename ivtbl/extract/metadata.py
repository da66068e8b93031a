# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Record extractor: read per-class layout metadata out of textual LLVM IR.

The front-end attaches one named metadata node per polymorphic class:

	!sd.class_info._ZTV1B = !{!0, !1, !2, !3}
	!0 = !{!"_ZTV1B"}                        ; class (vtable) name
	!1 = !{i64 2}                            ; number of sub-tables
	!2 = !{i64 0, !"_ZTV1A", i64 0, i64 3, i64 2}
	!3 = !{i64 1, !"_ZTV1C", i64 4, i64 6, i64 6}

Each sub-table tuple is (order, parent name, range start, range end, address
point); an empty parent name marks a root. A class's table is defined when
the module carries a non-external `@<name> = ... constant [...]` definition;
the initializer's element texts become the table contents.

Only the lines the records need are handed to the lark parser, so unrelated
metadata (debug info, TBAA, ...) never has to parse.
"""

from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from ivtbl.core.errors import MalformedRecord
from ivtbl.core.options import LayoutOptions
from ivtbl.core.records import ClassRecord, SubVTableRecord
from ivtbl.core.vtbl import is_vtable_name

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("ir_subset.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start=["md_node_def", "named_md_def", "global_def"],
	propagate_positions=True,
	maybe_placeholders=False,
)

_MD_LINE = re.compile(r"^(![-a-zA-Z$._0-9]+)\s*=")
_GLOBAL_LINE = re.compile(r'^(@(?:"[^"]*"|[-a-zA-Z$._0-9]+))\s*=')

_DECLARATION_LINKAGES = {"external", "extern_weak"}

MdValue = Union[str, int, None, "MdRef"]


@dataclass(frozen=True)
class MdRef:
	"""Reference to a numbered metadata node (`!12`)."""

	node_id: str


@dataclass
class ExtractedUnit:
	"""
	records: one ClassRecord per class-info node, in module order
	tables: class name -> original table element texts (None for a null slot),
	  for defined tables
	"""

	records: List[ClassRecord] = field(default_factory=list)
	tables: Dict[str, List[Optional[str]]] = field(default_factory=dict)


def _decode_md_string(tok: Token) -> str:
	"""
	Decode a metadata string token (`!"..."`). LLVM escapes non-printable bytes
	as `\\XX` hex pairs; reinterpret them as raw bytes and decode as UTF-8.
	"""
	content = tok.value[2:-1]
	raw = re.sub(r"\\([0-9A-Fa-f]{2})", lambda m: "\\x" + m.group(1), content)
	unescaped = codecs.decode(raw, "unicode_escape")
	return unescaped.encode("latin-1").decode("utf-8")


def _md_operands(tree: Tree) -> List[MdValue]:
	"""Operands of an `md_tuple` tree as Python values."""
	out: List[MdValue] = []
	for child in tree.children:
		if isinstance(child, Token):
			continue  # COMMA
		if child.data == "md_string":
			out.append(_decode_md_string(child.children[0]))
		elif child.data == "md_int":
			out.append(int(child.children[1]))
		elif child.data == "md_ref":
			out.append(MdRef(str(child.children[0])))
		elif child.data == "md_null":
			out.append(None)
	return out


def _unquote(name: str) -> str:
	if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
		return name[1:-1]
	return name


def _global_name(tok: Token) -> str:
	return _unquote(tok.value[1:])


class RecordExtractor:
	"""Extract `ClassRecord`s and table contents from an LLVM module's text."""

	def __init__(self, options: LayoutOptions | None = None) -> None:
		self.options = options or LayoutOptions()

	def extract_file(self, path: Path) -> ExtractedUnit:
		return self.extract(path.read_text())

	def extract(self, module_text: str) -> ExtractedUnit:
		md_lines: Dict[str, str] = {}
		named_lines: List[str] = []
		global_lines: List[str] = []
		prefix = "!" + self.options.class_info_prefix
		for raw_line in module_text.splitlines():
			line = raw_line.strip()
			if line.startswith("!"):
				m = _MD_LINE.match(line)
				if m is None:
					continue
				name = m.group(1)
				if name[1:].isdigit():
					md_lines[name] = line
				elif name.startswith(prefix):
					named_lines.append(line)
			elif line.startswith("@") and _GLOBAL_LINE.match(line):
				global_lines.append(line)

		unit = ExtractedUnit()
		for line in named_lines:
			record = self._class_record(line, md_lines)
			if self.options.vtable_names_only and not is_vtable_name(record.class_name):
				logger.debug("skipping non-vtable class record %s", record.class_name)
				continue
			unit.records.append(record)
		wanted = {r.class_name for r in unit.records}
		for line in global_lines:
			m = _GLOBAL_LINE.match(line)
			if m is None or _unquote(m.group(1)[1:]) not in wanted:
				continue
			name, elements = self._table_definition(line)
			if name is not None:
				unit.tables[name] = elements
		logger.debug("extracted %d class records, %d defined tables", len(unit.records), len(unit.tables))
		return unit

	# --- metadata ---------------------------------------------------------

	def _parse(self, line: str, start: str) -> Tree:
		try:
			return _PARSER.parse(line, start=start)
		except UnexpectedInput as err:
			raise MalformedRecord(
				f"cannot parse IR line: {line[:80]}",
				notes=[f"column {getattr(err, 'column', '?')}"],
			) from err

	def _node(self, node_id: str, md_lines: Dict[str, str]) -> List[MdValue]:
		line = md_lines.get(node_id)
		if line is None:
			raise MalformedRecord(f"metadata node {node_id} is not defined")
		tree = self._parse(line, "md_node_def")
		tuple_tree = next(c for c in tree.children if isinstance(c, Tree) and c.data == "md_tuple")
		return _md_operands(tuple_tree)

	def _class_record(self, line: str, md_lines: Dict[str, str]) -> ClassRecord:
		tree = self._parse(line, "named_md_def")
		md_name = str(tree.children[0])
		refs = [str(t) for t in tree.children[1:] if isinstance(t, Token) and t.type == "MD_ID"]
		if len(refs) < 2:
			raise MalformedRecord(f"class info node {md_name} has {len(refs)} operands, expected at least 2")

		name_ops = self._node(refs[0], md_lines)
		if len(name_ops) != 1 or not isinstance(name_ops[0], str):
			raise MalformedRecord(f"class info node {md_name}: operand 0 must hold the class name")
		class_name = name_ops[0]

		count_ops = self._node(refs[1], md_lines)
		if len(count_ops) != 1 or not isinstance(count_ops[0], int):
			raise MalformedRecord("operand 1 must hold the sub-table count", class_name=class_name)
		count = count_ops[0]
		if count != len(refs) - 2:
			raise MalformedRecord(
				f"sub-table count {count} does not match {len(refs) - 2} tuples",
				class_name=class_name,
			)

		subs: List[SubVTableRecord] = []
		for ref in refs[2:]:
			ops = self._node(ref, md_lines)
			if len(ops) != 5:
				raise MalformedRecord(
					f"sub-table tuple {ref} has {len(ops)} operands, expected 5",
					class_name=class_name,
				)
			order, parent, start, end, addr_pt = ops
			if not all(isinstance(v, int) for v in (order, start, end, addr_pt)) or not isinstance(parent, str):
				raise MalformedRecord(f"sub-table tuple {ref} has operands of the wrong kind", class_name=class_name)
			subs.append(
				SubVTableRecord(
					order=order,
					parent_name=parent or None,
					range_start=start,
					range_end=end,
					address_point=addr_pt,
				)
			)
		return ClassRecord(class_name=class_name, sub_tables=subs)

	# --- globals ----------------------------------------------------------

	def _table_definition(self, line: str) -> tuple[Optional[str], List[str]]:
		"""(name, element texts) of a global definition; name is None for declarations."""
		tree = self._parse(line, "global_def")
		name = _global_name(tree.children[0])
		items: Sequence[Union[Tree, Token]] = tree.children[1].children
		kind_idx: Optional[int] = None
		for idx, item in enumerate(items):
			if isinstance(item, Token) and item.type == "WORD":
				if item.value in _DECLARATION_LINKAGES:
					return None, []
				if item.value in ("global", "constant"):
					kind_idx = idx
					break
		if kind_idx is None:
			return None, []
		# <kind> <type> <initializer>
		rest = list(items[kind_idx + 1:])
		if len(rest) < 2 or not isinstance(rest[1], Tree):
			return name, []
		init = rest[1]
		if init.data == "bracket":
			return name, self._array_elements(line, init)
		if init.data == "brace":
			# Multi-sub-table classes: { [n x ptr], [m x ptr] } { [n x ptr] [...], ... }
			elements: List[str] = []
			for field_items in _split_commas(init.children[0].children):
				arrays = [i for i in field_items if isinstance(i, Tree) and i.data == "bracket"]
				if len(arrays) == 2:
					elements.extend(self._array_elements(line, arrays[1]))
			return name, elements
		return name, []

	def _array_elements(self, line: str, bracket: Tree) -> List[str]:
		return [self._element_text(line, items) for items in _split_commas(bracket.children[0].children) if items]

	def _element_text(self, line: str, items: List[Union[Tree, Token]]) -> str:
		"""Source text of an element, without its leading type."""
		value = items[1:] if len(items) > 1 else items
		start = _start_pos(value[0])
		end = _end_pos(value[-1])
		return line[start:end]


def _split_commas(items: Sequence[Union[Tree, Token]]) -> List[List[Union[Tree, Token]]]:
	groups: List[List[Union[Tree, Token]]] = [[]]
	for item in items:
		if isinstance(item, Token) and item.type == "COMMA":
			groups.append([])
		else:
			groups[-1].append(item)
	return groups


def _start_pos(item: Union[Tree, Token]) -> int:
	if isinstance(item, Token):
		return item.start_pos
	return item.meta.start_pos


def _end_pos(item: Union[Tree, Token]) -> int:
	if isinstance(item, Token):
		return item.end_pos
	return item.meta.end_pos


__all__ = ["RecordExtractor", "ExtractedUnit", "MdRef"]
