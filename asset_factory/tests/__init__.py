"""
Tests for the asset factory.
"""
