"""Type-directed declaration schemas for YAML configuration documents.

The `typedecl` package derives, from plain pydantic models, both a schema
descriptor and an evaluator for declarations written in a YAML-based
configuration language.

Key features:
- build-time classification of model fields into a closed set of kinds;
- schema and evaluator synthesis from a single classification pass;
- a sealed registry of declaration and enum types;
- YAML documents parsed into positioned expression trees and evaluated
  into typed model instances with structured, collected errors.
"""

from logging import NullHandler, getLogger

getLogger(__name__).addHandler(NullHandler())
