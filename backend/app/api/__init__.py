# @TASK P4-T4.1 - API package

"""Blog search REST API package.

Sub-modules expose FastAPI routers:
- search: hybrid blog search and keyword suggestions
"""
