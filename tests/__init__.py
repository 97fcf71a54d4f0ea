"""Test suite for the typedecl package.

This package contains unit and integration tests validating field
classification, declaration type synthesis, YAML document parsing and
evaluation of declarations written against plugin-provided models.
"""
