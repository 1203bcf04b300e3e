"""
HTTP API: routes, schemas and error rendering.
"""
