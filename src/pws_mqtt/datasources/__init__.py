"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, shared session
    └── {feature}.py      # Fetch functions (one per endpoint/concept)

Fetch functions make a single request and raise ``FetchError`` on failure;
retry and fallback policy lives with the caller (see ``wunderground/stations.py``).
"""
