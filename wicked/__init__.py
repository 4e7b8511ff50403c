"""Wicked: a FastAPI wiki built around page objects."""
