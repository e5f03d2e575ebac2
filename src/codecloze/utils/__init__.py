"""Helpers shared across CodeCloze modules."""
