"""Test package initialiser.

What:
  Marks ``tests`` as a package so pytest can import ``tests.unit`` helpers
  explicitly.

Invariants & Safety:
  - The file must remain side-effect free so that importing ``tests`` never
    mutates environment state or test fixtures.
"""
