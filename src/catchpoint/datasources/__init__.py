"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, response/error handling
    ├── {feature}.py      # Fetch functions (one per endpoint/concept)
    └── service.py        # Policy over the endpoints (optional)

Fetch functions are blocking (they use the shared ``requests`` session from
``services/http.py``) and return pydantic models from ``schemas.py``. Async
callers go through the service layer, which moves them off the event loop.
"""
