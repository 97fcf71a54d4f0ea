"""Core declaration type engine and YAML parser integration.

This module defines the core infrastructure for building declaration
types and evaluating YAML documents against them.

It provides:
- classification of host model annotations into kinds;
- synthesis of a schema and an evaluator per host model;
- a sealed registry of declaration and enum types;
- safe loading and registration of builtin and plugin-based extensions;
- integration of all extensions into a YAML loader.

The primary public entry point is `DocumentParser`, which prepares
a YAML loader, attaches all required constructors, and turns YAML
documents into evaluated declarations.
"""

from .definitions import TypeDefinitions
from .kinds import Kind, classify
from .parser import Decls, DocumentParser, Statements

__all__ = (
    'Decls',
    'DocumentParser',
    'Kind',
    'Statements',
    'TypeDefinitions',
    'classify',
)
