"""Shared test fixtures: fake collaborators and project factories."""
