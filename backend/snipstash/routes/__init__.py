# Routes package init
"""
SnipStash Backend — API Routes Package
========================================

What:  HTTP route handlers, one module per resource.

Route Inventory:
    - auth.py:      /api/auth/register, /api/auth/login, /api/auth/me
    - snippets.py:  /api/snippets (create, search) and /api/snippets/{id}/...
    - folders.py:   /api/folders and /api/folders/{id}
    - tags.py:      /api/tags, /api/tags/popular
    - health.py:    /health

Routes stay THIN: extract request data, resolve the caller through
get_current_identity, call one service method, shape the response.
Ownership and validation rules live in the services.
"""
