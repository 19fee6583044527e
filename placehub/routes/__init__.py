# Routes package init
"""
PlaceHub Backend: API Routes Package
=====================================

Route Inventory:
    - places.py:  /api/places         (list, page, get, create, update, delete)
    - health.py:  GET /health          (service health check)

Routes stay thin: they read the request, call the upload boundary and
PlaceService, and pick the status code. Workflow logic lives in services.
"""
