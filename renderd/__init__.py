"""
Renderer Socket Daemon
======================

A local rendering daemon that accepts one JSON render request per connection on a
Unix domain socket and answers with a base64-encoded image or an error message.

This package provides:
- Unix socket listener with one request/response per connection
- Request parsing and validation with Pydantic
- Pluggable rendering capability (Playwright-backed by default)
- Async client for the same wire protocol
"""

__version__ = "1.0.0"
__author__ = "renderd Team"
