"""Mapping layer - extract field models and resolve field-by-field plans."""

from __future__ import annotations

from struct_mapper.mapping.conversions import ConversionTable
from struct_mapper.mapping.extractor import TypeModelExtractor
from struct_mapper.mapping.matcher import FieldMatcher, SourceIndex
from struct_mapper.mapping.model import Field, TypeModel, is_exported
from struct_mapper.mapping.plan import ConvertStep, CopyStep, MatchPlan, SkipStep
from struct_mapper.mapping.qualify import (
    ImportSet,
    QualificationResolver,
    QualifiedName,
    join_import_path,
)

__all__ = [
    "TypeModelExtractor",
    "Field",
    "TypeModel",
    "is_exported",
    "FieldMatcher",
    "SourceIndex",
    "MatchPlan",
    "CopyStep",
    "ConvertStep",
    "SkipStep",
    "ConversionTable",
    "QualificationResolver",
    "QualifiedName",
    "ImportSet",
    "join_import_path",
]
