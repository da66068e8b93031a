# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Layout package: merged ("interleaved") tables and index translation.

Pipeline placement:
  verified CHA forest → Interleaver (per root) → LayoutIndexTranslator → rewrite sink
"""

from .interleave import CloudInterleaving, Interleaver, Slot
from .translate import LayoutIndexTranslator

__all__ = ["CloudInterleaving", "Interleaver", "Slot", "LayoutIndexTranslator"]
