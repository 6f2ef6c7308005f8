"""
pipelines/__init__.py

Pipeline processing modules.

This package contains the request pipelines of the voice assistant:
- voice_command: utterance in, spoken (or text) reply out

Each pipeline follows the BasePipeline interface.
"""
