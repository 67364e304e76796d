"""Reference HTTP server for the transcript API.

WHY: Lets the client and sync layer run against a real service locally and
in tests.

HOW: FastAPI app (app.py) over a thread-safe in-memory store (store.py),
with pydantic models (models.py). Run it with the caption-engine-api
console script or `python -m caption_engine --serve`.
"""
