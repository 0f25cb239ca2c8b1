"""Catalogue browser: faceted filtering and search over a content service."""
