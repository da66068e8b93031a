# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Merged-table materialisation with llvmlite.
"""

import pytest

ir = pytest.importorskip("llvmlite.ir")

from ivtbl import UnitContext  # noqa: E402
from ivtbl.core import LayoutOptions  # noqa: E402
from ivtbl.core.errors import IncompleteLayoutData  # noqa: E402
from ivtbl.core.records import ClassRecord, SubVTableRecord  # noqa: E402
from ivtbl.emit import MergedTableEmitter, merged_contents  # noqa: E402


def _rec(name, *subs):
	return ClassRecord(
		name,
		[SubVTableRecord(i, parent, start, end, ap) for i, (parent, start, end, ap) in enumerate(subs)],
	)


RECORDS = [
	_rec("_ZTV1A", (None, 0, 2, 2)),
	_rec("_ZTV1B", (None, 0, 2, 2)),
	_rec("_ZTV1D", ("_ZTV1A", 0, 3, 2), ("_ZTV1B", 4, 6, 6)),
]
TABLES = {
	"_ZTV1A": ["null", "@_ZTI1A", "@_ZN1A1fEv"],
	"_ZTV1D": [
		"null",
		"@_ZTI1D",
		"@_ZN1D1fEv",
		"@_ZN1D1gEv",
		"inttoptr (i64 -8 to ptr)",
		"@_ZTI1D",
		"@_ZThn8_N1D1gEv",
	],
}


def _ctx():
	return UnitContext().run(RECORDS, TABLES)


def test_merged_contents_follow_descriptor():
	ctx = _ctx()
	assert merged_contents(ctx.interleavings["_ZTV1A"], TABLES) == [
		"null",
		"null",
		"@_ZTI1A",
		"@_ZTI1D",
		"@_ZN1A1fEv",
		"@_ZN1D1fEv",
		"@_ZN1D1gEv",
	]
	# _ZTV1B is abstract here: only D's secondary sub-table is laid out.
	assert merged_contents(ctx.interleavings["_ZTV1B"], TABLES) == [
		"inttoptr (i64 -8 to ptr)",
		"@_ZTI1D",
		"@_ZThn8_N1D1gEv",
	]


def test_missing_contents_are_rejected():
	ctx = _ctx()
	with pytest.raises(IncompleteLayoutData):
		merged_contents(ctx.interleavings["_ZTV1A"], {"_ZTV1A": TABLES["_ZTV1A"]})
	with pytest.raises(IncompleteLayoutData):
		merged_contents(ctx.interleavings["_ZTV1A"], {"_ZTV1A": ["null"], "_ZTV1D": TABLES["_ZTV1D"]})


def test_emit_unit_creates_one_global_per_cloud():
	ctx = _ctx()
	module = ir.Module(name="merged")
	globals_by_root = MergedTableEmitter().emit_unit(ctx, TABLES, module)
	assert set(globals_by_root) == {"_ZTV1A", "_ZTV1B"}
	gv = globals_by_root["_ZTV1A"]
	assert gv.name == "_SD_ZTV1A"
	assert gv.global_constant
	assert gv.align == 8
	assert gv.value_type.count == 7
	text = str(module)
	assert '@"_SD_ZTV1A" = constant [7 x' in text
	assert '@"_SD_ZTV1B" = constant [3 x' in text
	assert "inttoptr (i64 -8 to ptr)" in text
	assert "align 8" in text


def test_options_drive_name_and_alignment():
	ctx = UnitContext(LayoutOptions(merged_table_prefix="_IV", word_width=4)).run(RECORDS, TABLES)
	module = ir.Module(name="merged")
	gv = MergedTableEmitter(ctx.options).emit_unit(ctx, TABLES, module)["_ZTV1A"]
	assert gv.name == "_IV_ZTV1A"
	assert gv.align == 4


def test_relocated_address_point_reference():
	ctx = _ctx()
	emitter = MergedTableEmitter()
	globals_by_root = emitter.emit_unit(ctx, TABLES)
	# D's secondary address point (6) sits at merged position 2 of _SD_ZTV1B.
	ref = emitter.relocated_address_point(ctx, globals_by_root, "_ZTV1D", 6)
	text = ref.get_reference()
	assert text.startswith("getelementptr (")
	assert '@"_SD_ZTV1B"' in text
	assert text.endswith("i64 0, i64 2)")
	ref = emitter.relocated_address_point(ctx, globals_by_root, "_ZTV1D", 2)
	assert '@"_SD_ZTV1A"' in ref.get_reference()
	assert ref.get_reference().endswith("i64 0, i64 5)")


def test_element_conversion():
	emitter = MergedTableEmitter()
	null = emitter._as_constant(None)
	assert null.get_reference() == "null"
	assert emitter._as_constant("null").get_reference() == "null"
	assert emitter._as_constant("@f").get_reference() == "@f"
	const = ir.Constant(ir.IntType(8).as_pointer(), None)
	assert emitter._as_constant(const) is const
