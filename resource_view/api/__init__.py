"""FastAPI adapter for resource views.

The view core knows nothing about HTTP; this package turns rendered bodies
into JSON responses and view errors into error responses.
"""
