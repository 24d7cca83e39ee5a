"""Utility helpers shared by hosts embedding the lens core."""
