"""
Core Request Handling
=====================

Core logic for turning one request body into one response body.

Modules:
- errors: Parse and render error variants
- handler: Parse, render and build the response for a single connection
- rendering: The rendering capability interface and its default implementation
"""
