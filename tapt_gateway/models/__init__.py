"""
Gateway Models

Pydantic models for normalized submissions and API responses.
"""
