# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: analyse one unit and report its merged layout.

	python -m ivtbl module.ll
	python -m ivtbl records.json --translate _ZTV1A:-1 --json

Input is textual LLVM IR carrying class-info metadata, or the equivalent JSON
document (see `ivtbl.extract.jsonio`). The driver prints cloud sizes, merged
descriptors and the requested translations; with --emit-ir it also writes the
merged tables as an LLVM module.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from llvmlite import ir  # type: ignore

from ivtbl.context import UnitContext
from ivtbl.core.diagnostics import Diagnostic
from ivtbl.core.errors import LayoutError, MalformedRecord
from ivtbl.core.options import LayoutOptions
from ivtbl.emit.llvm_tables import MergedTableEmitter
from ivtbl.extract.jsonio import load_unit_json
from ivtbl.extract.metadata import ExtractedUnit, RecordExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslateRequest:
	class_name: str
	offset: int
	relative: bool = True

	def __str__(self) -> str:
		return f"{self.class_name}:{self.offset}{'' if self.relative else ':abs'}"


def parse_translate_request(text: str) -> TranslateRequest:
	"""`CLASS:OFFSET` (relative to the address point) or `CLASS:OFFSET:abs`."""
	relative = True
	body = text
	if body.endswith(":abs"):
		relative = False
		body = body[: -len(":abs")]
	name, sep, off = body.rpartition(":")
	if not sep or not name:
		raise argparse.ArgumentTypeError(f"expected CLASS:OFFSET[:abs], got '{text}'")
	try:
		offset = int(off)
	except ValueError:
		raise argparse.ArgumentTypeError(f"offset '{off}' is not an integer") from None
	return TranslateRequest(name, offset, relative)


def _load_unit(path: Path, options: LayoutOptions) -> tuple[ExtractedUnit, bool]:
	if path.suffix == ".json":
		try:
			return load_unit_json(path)
		except json.JSONDecodeError as err:
			raise MalformedRecord(f"{path}: invalid JSON: {err.msg}", notes=[f"line {err.lineno}, column {err.colno}"]) from err
	return RecordExtractor(options).extract_file(path), True


def _diag_to_json(diag: Diagnostic, source: Path) -> dict:
	out = diag.to_dict()
	out["file"] = str(source)
	return out


def _print_human(diags: List[Diagnostic], source: Path) -> None:
	for d in diags:
		where = f" [{d.class_name}]" if d.class_name else ""
		print(f"{source}: {d.severity}: {d.phase}: {d.message}{where}", file=sys.stderr)
		for note in d.notes:
			print(f"  note: {note}", file=sys.stderr)


def _emit_ir(ctx: UnitContext, unit: ExtractedUnit, path: Path) -> None:
	module = ir.Module(name=path.stem)
	MergedTableEmitter(ctx.options).emit_unit(ctx, unit.tables, module)
	path.write_text(str(module))


def _report(ctx: UnitContext, translations: List[Dict[str, Any]]) -> Dict[str, Any]:
	clouds = {}
	for root in ctx.roots:
		if root not in ctx.interleavings:
			continue
		clouds[root] = {
			"size": ctx.cloud_size(root),
			"descriptor": [list(t) for t in ctx.descriptor(root)],
		}
	return {
		"clouds": clouds,
		"excluded_roots": ctx.excluded_roots,
		"undefined_classes": ctx.undefined_classes,
		"translations": translations,
	}


def _print_report(report: Dict[str, Any], options: LayoutOptions) -> None:
	for root, info in report["clouds"].items():
		print(f"{options.merged_table_name(root)}: cloud size {info['size']}, {len(info['descriptor'])} slots")
		for pos, (cls, order, idx) in enumerate(info["descriptor"]):
			print(f"  {pos:4d}  {cls}[{order}] @ {idx}")
	for root in report["excluded_roots"]:
		print(f"excluded: {root}")
	for cls in report["undefined_classes"]:
		print(f"undefined: {cls}")
	for t in report["translations"]:
		print(f"translate {t['request']} -> {t['result']}")


def main(argv: list[str] | None = None) -> int:
	"""
	Analyse one unit. Exit code 0 on success, 1 when any error diagnostic was
	produced (an ambiguous diamond is reported but does not fail the run).
	"""
	parser = argparse.ArgumentParser(prog="ivtbl", description="interleaved vtable layout")
	parser.add_argument("source", type=Path, help="Textual LLVM IR (.ll) or records JSON (.json)")
	parser.add_argument(
		"--translate",
		dest="translations",
		action="append",
		type=parse_translate_request,
		default=[],
		metavar="CLASS:OFFSET[:abs]",
		help="Translate an original offset into the merged layout (repeatable)",
	)
	parser.add_argument("--json", action="store_true", help="Emit results and diagnostics as JSON")
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Log pipeline progress (-vv for debug)")
	parser.add_argument(
		"--sibling-order",
		choices=["declaration", "sorted"],
		default="declaration",
		help="Child iteration order during interleaving",
	)
	parser.add_argument("--word-width", type=int, default=8, help="Bytes per table slot")
	parser.add_argument("--class-info-prefix", default="sd.class_info", help="Named-metadata prefix of class records")
	parser.add_argument(
		"--all-names",
		action="store_true",
		help="Keep records whose class name is not a vtable symbol",
	)
	parser.add_argument("--emit-ir", type=Path, help="Write the merged tables as LLVM IR to the given path")
	args = parser.parse_args(argv)

	if args.verbose:
		logging.basicConfig(
			level=logging.DEBUG if args.verbose > 1 else logging.INFO,
			format="%(levelname)s %(name)s: %(message)s",
			stream=sys.stderr,
		)

	source_path: Path = args.source
	try:
		options = LayoutOptions(
			sibling_order=args.sibling_order,
			word_width=args.word_width,
			class_info_prefix=args.class_info_prefix,
			vtable_names_only=not args.all_names,
		)
	except ValueError as err:
		parser.error(str(err))

	diags: List[Diagnostic] = []
	report: Optional[Dict[str, Any]] = None
	phase = "extract"
	with UnitContext(options) as ctx:
		try:
			unit, tables_supplied = _load_unit(source_path, options)
			logger.info("%s: %d class records", source_path, len(unit.records))
			phase = "layout"
			ctx.run(unit.records, unit.tables if tables_supplied else None)
			diags.extend(ctx.diagnostics)
			phase = "translate"
			translations = []
			for req in args.translations:
				translations.append({"request": str(req), "result": ctx.translate(req.class_name, req.offset, req.relative)})
			if args.emit_ir is not None:
				phase = "emit"
				if not tables_supplied:
					raise MalformedRecord("--emit-ir needs table contents; the input has no 'tables'")
				_emit_ir(ctx, unit, args.emit_ir)
			report = _report(ctx, translations)
		except LayoutError as err:
			diags.append(Diagnostic.from_error(err, phase=phase))
		except OSError as err:
			diags.append(Diagnostic(message=f"cannot read input: {err}", code="io", phase=phase))

	failed = any(d.severity == "error" and d.code != "ambiguous-diamond" for d in diags)
	exit_code = 1 if failed else 0
	if args.json:
		payload: Dict[str, Any] = {
			"exit_code": exit_code,
			"diagnostics": [_diag_to_json(d, source_path) for d in diags],
		}
		if report is not None and not failed:
			payload.update(report)
		print(json.dumps(payload))
	else:
		_print_human(diags, source_path)
		if report is not None and not failed:
			_print_report(report, options)
	return exit_code


__all__ = ["main", "parse_translate_request", "TranslateRequest"]
