# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diamond resolution: least-common-ancestor collapse, cycles and ambiguous
diamonds that exclude only the clouds they touch.
"""

import pytest

from ivtbl.cha import CloudBuilder, CloudSizeCalculator, CloudVerifier, DiamondResolver
from ivtbl.core import VTblId
from ivtbl.core.errors import MalformedRecord
from ivtbl.core.records import ClassRecord, SubVTableRecord


def _rec(name, *parents):
	return ClassRecord(name, [SubVTableRecord(i, p, 0, 1, 1) for i, p in enumerate(parents)])


def _v(name, order=0):
	return VTblId(name, order)


def test_classic_diamond_collapses_to_common_base():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", None),
			_rec("_ZTV1B", "_ZTV1A"),
			_rec("_ZTV1C", "_ZTV1A"),
			_rec("_ZTV1D", "_ZTV1B"),
			_rec("_ZTV1D", "_ZTV1C"),
		]
	)
	report = DiamondResolver().resolve(forest)
	assert report.resolved == {_v("_ZTV1D"): _v("_ZTV1A")}
	assert not report.excluded_roots
	assert forest.parents_of(_v("_ZTV1D")) == [_v("_ZTV1A")]
	assert forest.children_of(_v("_ZTV1A")) == [_v("_ZTV1B"), _v("_ZTV1C"), _v("_ZTV1D")]
	assert forest.children_of(_v("_ZTV1B")) == []


def test_candidate_that_is_ancestor_of_the_others_survives():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", None),
			_rec("_ZTV1B", "_ZTV1A"),
			_rec("_ZTV1D", "_ZTV1B"),
			_rec("_ZTV1D", "_ZTV1A"),
		]
	)
	report = DiamondResolver().resolve(forest)
	assert report.resolved[_v("_ZTV1D")] == _v("_ZTV1A")
	assert forest.parents_of(_v("_ZTV1D")) == [_v("_ZTV1A")]


def test_deepest_common_ancestor_wins():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", None),
			_rec("_ZTV1B", "_ZTV1A"),
			_rec("_ZTV1C", "_ZTV1B"),
			_rec("_ZTV1E", "_ZTV1B"),
			_rec("_ZTV1D", "_ZTV1C"),
			_rec("_ZTV1D", "_ZTV1E"),
		]
	)
	DiamondResolver().resolve(forest)
	assert forest.parents_of(_v("_ZTV1D")) == [_v("_ZTV1B")]
	# The resolved forest is a tree again.
	membership = CloudVerifier().verify(forest)
	assert set(membership.values()) == {"_ZTV1A"}
	assert len(membership) == 5


def test_ambiguous_diamond_excludes_only_its_clouds():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", None),
			_rec("_ZTV1B", None),
			_rec("_ZTV1D", "_ZTV1A"),
			_rec("_ZTV1D", "_ZTV1B"),
			_rec("_ZTV1X", None),
			_rec("_ZTV1Y", "_ZTV1X"),
		]
	)
	report = DiamondResolver().resolve(forest)
	assert list(report.excluded_roots) == ["_ZTV1A", "_ZTV1B"]
	assert len(report.errors) == 1
	err = report.errors[0]
	assert err.class_name == "_ZTV1D"
	assert err.roots == ("_ZTV1A", "_ZTV1B")
	assert report.diagnostics[0].code == "ambiguous-diamond"
	assert forest.parent_count(_v("_ZTV1D")) == 2

	membership = CloudVerifier().verify(forest, report.excluded_roots)
	assert membership == {_v("_ZTV1X"): "_ZTV1X", _v("_ZTV1Y"): "_ZTV1X"}
	sizes = CloudSizeCalculator().compute(forest, report.excluded_roots)
	assert sizes == {"_ZTV1X": 2, "_ZTV1Y": 1}


def test_node_below_an_ambiguous_node_is_ambiguous_too():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", None),
			_rec("_ZTV1B", None),
			_rec("_ZTV1D", "_ZTV1A"),
			_rec("_ZTV1D", "_ZTV1B"),
			_rec("_ZTV1E", "_ZTV1D"),
			_rec("_ZTV1E", "_ZTV1A"),
		]
	)
	report = DiamondResolver().resolve(forest)
	assert [e.class_name for e in report.errors] == ["_ZTV1D", "_ZTV1E"]
	assert sorted(report.excluded_roots) == ["_ZTV1A", "_ZTV1B"]


def test_parent_cycle_is_malformed():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1A", None),
			_rec("_ZTV1B", "_ZTV1C"),
			_rec("_ZTV1C", "_ZTV1B"),
		]
	)
	with pytest.raises(MalformedRecord):
		DiamondResolver().resolve(forest)


def test_topological_order_puts_parents_first():
	forest = CloudBuilder().build(
		[
			_rec("_ZTV1D", "_ZTV1B"),
			_rec("_ZTV1B", "_ZTV1A"),
			_rec("_ZTV1A", None),
		]
	)
	order = DiamondResolver().topological_order(forest)
	assert order.index(_v("_ZTV1A")) < order.index(_v("_ZTV1B")) < order.index(_v("_ZTV1D"))
