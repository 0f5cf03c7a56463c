"""
XenoCanto Proxy: Application Package Initializer
===================================================

What: Marks the `app` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← CORS origin, query parsing
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← cache → upstream orchestration
    ├─────────────────────────────────────┤
    │   Edge cache store   │  xeno-canto  │  ← external collaborators
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
