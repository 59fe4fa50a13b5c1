"""
Rendering Module
===============

The rendering capability used by the daemon.

Components:
- base: Renderer interface and data URL helpers
- playwright_renderer: Jinja2 + Playwright screenshot renderer
"""
