"""Workspace bootstrap command (``drill init``)."""
