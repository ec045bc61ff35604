# Routes package init
"""
Import-Export Backend — API Routes Package
===========================================

Route Inventory:
    - products.py: catalog listing/search and the "my exports" CRUD
    - imports.py:  POST /import/{userId} and the "my imports" ledger
    - health.py:   GET /health, GET /

Routes stay thin: read the request, call a service, return its result.
"""
