"""Test suite for repo search."""
