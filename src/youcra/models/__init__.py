"""Pydantic domain models for YouCra."""
