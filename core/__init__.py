"""
core/__init__.py

Core orchestration modules.

This package contains the central coordination logic for the voice assistant:
- orchestrator: The tool-calling conversation loop (provider call, tool dispatch,
  final provider call) and its state machine

These modules handle the high-level flow of one utterance through the system.
"""
