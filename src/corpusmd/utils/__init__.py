"""Utility helpers for corpusmd."""
