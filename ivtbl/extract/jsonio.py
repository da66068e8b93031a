# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
JSON form of the extractor output.

	{
	  "classes": [{"className": ..., "subTables": [{"order": 0, ...}]}],
	  "tables": {"<className>": ["<element>", ...]}
	}

`tables` is optional; when absent every class is treated as defined. A null
element stands for a null slot.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ivtbl.core.errors import MalformedRecord
from ivtbl.core.records import ClassRecord
from ivtbl.extract.metadata import ExtractedUnit


def unit_from_json(data: Mapping[str, Any]) -> tuple[ExtractedUnit, bool]:
	"""Return the unit plus whether table contents were supplied."""
	if not isinstance(data, Mapping):
		raise MalformedRecord("JSON input must be an object with a 'classes' list")
	classes = data.get("classes", [])
	if not isinstance(classes, list):
		raise MalformedRecord("'classes' must be a list of class records")
	records = []
	for idx, cls in enumerate(classes):
		if not isinstance(cls, Mapping):
			raise MalformedRecord(f"class record {idx} is not an object")
		subs = cls.get("subTables", [])
		if not isinstance(subs, list) or not all(isinstance(s, Mapping) for s in subs):
			raise MalformedRecord(
				f"class record {idx}: 'subTables' must be a list of objects",
				class_name=str(cls.get("className")),
			)
		try:
			records.append(ClassRecord.from_dict(cls))
		except (KeyError, TypeError, ValueError) as err:
			raise MalformedRecord(f"invalid class record in JSON input: {err}") from err
	tables = data.get("tables")
	if tables is not None and not isinstance(tables, Mapping):
		raise MalformedRecord("'tables' must map class names to element lists")
	unit = ExtractedUnit(records=records)
	if tables is not None:
		for name, elems in tables.items():
			if not isinstance(elems, list):
				raise MalformedRecord("table contents must be a list of elements", class_name=str(name))
			unit.tables[str(name)] = [None if e is None else str(e) for e in elems]
	return unit, tables is not None


def load_unit_json(path: Path) -> tuple[ExtractedUnit, bool]:
	return unit_from_json(json.loads(path.read_text()))


def unit_to_json(unit: ExtractedUnit) -> dict[str, Any]:
	return {
		"classes": [r.to_dict() for r in unit.records],
		"tables": {name: list(elems) for name, elems in unit.tables.items()},
	}


__all__ = ["unit_from_json", "load_unit_json", "unit_to_json"]
