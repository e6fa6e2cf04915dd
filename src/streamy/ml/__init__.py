"""Classifier model collaborators."""
