"""Shared infrastructure apps of the dynafield project."""
