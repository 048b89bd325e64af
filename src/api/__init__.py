"""
API Module
---------
Provides RESTful API endpoints for OSM relation resolution using FastAPI.
Features include:
- Resolving cities, towns and states by exact name
- Resolving cities, towns and states containing a position
- Resolving many positions in parallel
- Listing hotels and museums inside a resolved boundary
"""
