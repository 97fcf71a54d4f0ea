"""Declarative schema of declarations and documents.

Defines immutable Pydantic models that describe schema body types,
declaration and enum types, and the parsed expression tree of
configuration documents.
"""

from .declarations import Decl, DeclType, EnumType, take_decls
from .expressions import (
    BaseExpression,
    BoolLiteral,
    DictItem,
    DictLiteral,
    DoubleLiteral,
    ExtImportExpression,
    IntegerLiteral,
    ListLiteral,
    Position,
    Quoter,
    Statement,
    StringLiteral,
    Var,
)
from .types import (
    BoolType,
    DeclRefType,
    DictEntry,
    DictType,
    EnumRefType,
    ExtImportType,
    ListType,
    NumberType,
    QuoterType,
    SchemaType,
    StringType,
)

__all__ = (
    'BaseExpression',
    'BoolLiteral',
    'BoolType',
    'Decl',
    'DeclRefType',
    'DeclType',
    'DictEntry',
    'DictItem',
    'DictLiteral',
    'DictType',
    'DoubleLiteral',
    'EnumRefType',
    'EnumType',
    'ExtImportExpression',
    'ExtImportType',
    'IntegerLiteral',
    'ListLiteral',
    'ListType',
    'NumberType',
    'Position',
    'Quoter',
    'QuoterType',
    'SchemaType',
    'Statement',
    'StringLiteral',
    'StringType',
    'Var',
    'take_decls',
)
