"""Pydantic schemas shared by services and the API."""
