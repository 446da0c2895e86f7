"""Shared exceptions used across layers."""
