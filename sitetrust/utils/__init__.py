"""Utility helpers for sitetrust."""
