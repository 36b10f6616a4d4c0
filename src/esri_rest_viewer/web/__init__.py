"""Viewer web application."""
