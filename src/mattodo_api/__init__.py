"""
Mattodo API package.

A FastAPI service storing todo tasks in a single SQLite table. The ASGI app
lives in `mattodo_api.main:app`; `python -m mattodo_api` serves it with uvicorn.
"""
