"""Core gameplay primitives (feed events and commentary text).

Kept free of FastAPI concerns so it can be reused by API routes, scripts, and tests.
"""
