"""
Pydantic schema package.

Request/response models for the HTTP API:
- slots.py
- requests.py
"""
