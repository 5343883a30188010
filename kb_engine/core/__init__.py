"""Core domain logic."""
