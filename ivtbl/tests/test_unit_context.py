# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
End-to-end pipeline through `UnitContext`: results, determinism, exclusion
and per-unit lifecycle.
"""

import pytest

from ivtbl import ClassRecord, LayoutOptions, SubVTableRecord, UnitContext, VTblId
from ivtbl.core.errors import MalformedRecord, UnmappedReference


def _rec(name, *subs):
	return ClassRecord(
		name,
		[SubVTableRecord(i, parent, start, end, ap) for i, (parent, start, end, ap) in enumerate(subs)],
	)


R = "_ZTV1R"
C = "_ZTV1C"


def _unit():
	return [
		_rec(R, (None, 0, 1, 1)),
		_rec(C, (R, 0, 1, 1)),
		_rec("_ZTV1X", (None, 0, 2, 1)),
		_rec("_ZTV1Y", ("_ZTV1X", 0, 3, 1)),
		_rec("_ZTV1Z", ("_ZTV1X", 0, 2, 2)),
	]


def test_run_produces_sizes_descriptors_and_translations():
	ctx = UnitContext().run(_unit())
	assert ctx.roots == [R, "_ZTV1X"]
	assert ctx.cloud_size(R) == 2
	assert ctx.cloud_size("_ZTV1X") == 3
	assert ctx.descriptor(R) == [(R, 0, 0), (C, 0, 0), (R, 0, 1), (C, 0, 1)]
	assert ctx.layout_index_map(VTblId(C, 0)) == {0: 1, 1: 3}
	assert ctx.translate(R, -1) == -2
	assert ctx.cloud_of(VTblId("_ZTV1Z", 0)) == "_ZTV1X"
	assert ctx.address_point("_ZTV1Z") == 2
	assert ctx.num_address_points("_ZTV1Y") == 1
	assert ctx.address_point_order("_ZTV1Y", 1) == 0
	assert ctx.knows_about(VTblId("_ZTV1Y", 0))
	assert not ctx.knows_about(VTblId("_ZTV1Y", 1))
	assert ctx.diagnostics == []


def test_every_sub_table_element_lands_exactly_once():
	ctx = UnitContext().run(_unit())
	desc = ctx.descriptor("_ZTV1X")
	assert len(desc) == 3 + 4 + 3
	assert sorted(desc) == sorted(
		[("_ZTV1X", 0, i) for i in range(3)] + [("_ZTV1Y", 0, i) for i in range(4)] + [("_ZTV1Z", 0, i) for i in range(3)]
	)


def test_rebuild_is_identical():
	first = UnitContext().run(_unit())
	second = UnitContext().run(_unit())
	assert first.descriptors() == second.descriptors()
	assert first.translator.index_map == second.translator.index_map
	assert first.cloud_sizes == second.cloud_sizes


def test_sorted_sibling_order_changes_only_sibling_placement():
	ctx = UnitContext(LayoutOptions(sibling_order="sorted")).run(
		[_rec("_ZTV1R", (None, 0, 0, 0)), _rec("_ZTV1Z", (R, 0, 0, 0)), _rec("_ZTV1B", (R, 0, 0, 0))]
	)
	assert ctx.descriptor(R) == [(R, 0, 0), ("_ZTV1B", 0, 0), ("_ZTV1Z", 0, 0)]


def test_ambiguous_diamond_is_reported_not_raised():
	records = _unit() + [
		_rec("_ZTV1A", (None, 0, 1, 1)),
		_rec("_ZTV1B", (None, 0, 1, 1)),
		_rec("_ZTV1D", ("_ZTV1A", 0, 1, 1)),
		_rec("_ZTV1D", ("_ZTV1B", 0, 1, 1)),
	]
	ctx = UnitContext().run(records)
	assert ctx.excluded_roots == ["_ZTV1A", "_ZTV1B"]
	assert [d.code for d in ctx.diagnostics] == ["ambiguous-diamond"]
	assert set(ctx.descriptors()) == {R, "_ZTV1X"}
	assert ctx.translate(R, -1) == -2
	with pytest.raises(UnmappedReference):
		ctx.translate("_ZTV1D", 0)
	with pytest.raises(UnmappedReference):
		ctx.descriptor("_ZTV1A")


def test_malformed_unit_leaves_context_cleared():
	ctx = UnitContext().run(_unit())
	with pytest.raises(MalformedRecord):
		ctx.run([_rec(R, (None, 0, 1, 1), (None, 2, 3, 3))])
	assert ctx.roots == []
	with pytest.raises(UnmappedReference):
		ctx.translate(R, 0)


def test_clear_drops_every_result():
	with UnitContext() as ctx:
		ctx.run(_unit())
		assert ctx.translate(R, 0) == 0
	assert ctx.forest is None
	assert ctx.descriptors() == {}
	assert not ctx.knows_about(VTblId(R, 0))
	with pytest.raises(UnmappedReference):
		ctx.translate(R, 0)
	with pytest.raises(UnmappedReference):
		ctx.cloud_size(R)
	with pytest.raises(UnmappedReference):
		ctx.address_point(R)


def test_undefined_classes_are_listed():
	tables = {C: ["0", "0"]}
	ctx = UnitContext().run([_rec(R, (None, 0, 1, 1)), _rec(C, (R, 0, 1, 1))], tables)
	assert ctx.undefined_classes == [R]
	assert ctx.is_undefined(R)
	assert ctx.cloud_size(R) == 2
	assert ctx.descriptor(R) == [(C, 0, 0), (C, 0, 1)]
	assert ctx.translate(R, 0) == 0
