"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Daemon settings and environment configuration
- logging: Structured logging configuration
"""
