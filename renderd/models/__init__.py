"""
Data Models
===========

Pydantic models for the render request/response wire format.
"""
