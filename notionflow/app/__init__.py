"""Notionflow FastAPI application."""
