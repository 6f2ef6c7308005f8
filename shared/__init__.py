"""
shared/__init__.py

Shared utilities and models used across multiple modules.

This package contains common functionality that is used by multiple
components of the voice assistant:
- models: Conversation, tool invocation and provider-selection types
- utils: Small helpers for JSON parsing, header encoding and log truncation
"""
