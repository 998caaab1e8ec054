"""Structured-type analyzers, one per :class:`~specforge.descriptors.Capability`."""

from __future__ import annotations

from specforge.analyzers.base import StructuredTypeAnalyzer
from specforge.analyzers.declared import DeclaredFieldAnalyzer
from specforge.analyzers.projection import ProjectionAnalyzer
from specforge.analyzers.rule_set import RuleSetAnalyzer, RuleSource, default_rule_source

__all__ = [
    "DeclaredFieldAnalyzer",
    "ProjectionAnalyzer",
    "RuleSetAnalyzer",
    "RuleSource",
    "StructuredTypeAnalyzer",
    "default_rule_source",
]
