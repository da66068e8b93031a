# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Cloud verification, cloud sizes and the iterative traversals.
"""

import pytest

from ivtbl.cha import CloudBuilder, CloudSizeCalculator, CloudVerifier, first_defined_descendant, preorder
from ivtbl.core import VTblId
from ivtbl.core.errors import IncompleteLayoutData
from ivtbl.core.records import ClassRecord, SubVTableRecord


def _rec(name, *subs):
	return ClassRecord(
		name,
		[SubVTableRecord(i, parent, start, end, ap) for i, (parent, start, end, ap) in enumerate(subs)],
	)


def _hierarchy():
	# A <- B <- D[0]; A <- C <- D[1]
	return [
		_rec("_ZTV1A", (None, 0, 2, 2)),
		_rec("_ZTV1B", ("_ZTV1A", 0, 2, 2)),
		_rec("_ZTV1C", ("_ZTV1A", 0, 2, 2)),
		_rec("_ZTV1D", ("_ZTV1B", 0, 3, 2), ("_ZTV1C", 4, 6, 6)),
	]


def test_sizes_count_every_sub_table_in_the_subtree():
	forest = CloudBuilder().build(_hierarchy())
	sizes = CloudSizeCalculator().compute(forest)
	assert sizes == {"_ZTV1A": 5, "_ZTV1B": 2, "_ZTV1C": 2, "_ZTV1D": 1}


def test_membership_maps_every_node_to_its_root():
	forest = CloudBuilder().build(_hierarchy())
	membership = CloudVerifier().verify(forest)
	assert membership[VTblId("_ZTV1D", 1)] == "_ZTV1A"
	assert len(membership) == 5


def test_unresolved_diamond_fails_verification():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", (None, 0, 1, 1)),
			_rec("_ZTV1B", ("_ZTV1A", 0, 1, 1)),
			_rec("_ZTV1C", ("_ZTV1A", 0, 1, 1)),
			_rec("_ZTV1D", ("_ZTV1B", 0, 1, 1)),
			_rec("_ZTV1D", ("_ZTV1C", 0, 1, 1)),
		]
	)
	with pytest.raises(IncompleteLayoutData):
		CloudVerifier().verify(forest)


def test_address_point_outside_range_fails_verification():
	forest = CloudBuilder().build([_rec("_ZTV1A", (None, 0, 1, 3))])
	with pytest.raises(IncompleteLayoutData) as exc:
		CloudVerifier().verify(forest)
	assert exc.value.class_name == "_ZTV1A"


def test_unreachable_node_fails_verification():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", (None, 0, 1, 1)),
			_rec("_ZTV1B", ("_ZTV1C", 0, 1, 1)),
			_rec("_ZTV1C", ("_ZTV1B", 0, 1, 1)),
		]
	)
	with pytest.raises(IncompleteLayoutData):
		CloudVerifier().verify(forest)


def test_preorder_visits_parents_first_in_sibling_order():
	forest = CloudBuilder().build(_hierarchy())
	order = preorder(forest, VTblId("_ZTV1A", 0))
	assert order == [
		VTblId("_ZTV1A", 0),
		VTblId("_ZTV1B", 0),
		VTblId("_ZTV1D", 0),
		VTblId("_ZTV1C", 0),
		VTblId("_ZTV1D", 1),
	]


def test_preorder_handles_deep_chains():
	records = [_rec("_ZTV2C0", (None, 0, 1, 1))]
	records += [_rec(f"_ZTV2C{i}", (f"_ZTV2C{i - 1}", 0, 1, 1)) for i in range(1, 5000)]
	forest = CloudBuilder().build(records)
	assert len(preorder(forest, VTblId("_ZTV2C0", 0))) == 5000
	assert CloudSizeCalculator().compute(forest)["_ZTV2C0"] == 5000


def test_first_defined_descendant_prefers_direct_children():
	records = [
		_rec("_ZTV1A", (None, 0, 1, 1)),
		_rec("_ZTV1B", ("_ZTV1A", 0, 1, 1)),
		_rec("_ZTV1E", ("_ZTV1B", 0, 1, 1)),
		_rec("_ZTV1C", ("_ZTV1A", 0, 1, 1)),
	]
	forest = CloudBuilder().build(records, tables={"_ZTV1E": [], "_ZTV1C": []})
	assert first_defined_descendant(forest, VTblId("_ZTV1A", 0)) == VTblId("_ZTV1C", 0)
	assert first_defined_descendant(forest, VTblId("_ZTV1B", 0)) == VTblId("_ZTV1E", 0)
	assert first_defined_descendant(forest, VTblId("_ZTV1C", 0)) is None
