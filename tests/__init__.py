"""Tests for the wpf_build package."""
