"""Turn/action processing.

This package centralizes validation + orchestration so every player request
flows through the same pipeline and shows up consistently in server logs.
"""
