"""Utilities package for the recipe costing engine."""
