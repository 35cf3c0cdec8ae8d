"""
Schemas module - Request/Response schemas for API endpoints.

Services hand back plain dicts (serialized Mongo documents);
these schemas are the API contract the client sees.
"""
