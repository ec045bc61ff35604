# Services package init
"""
Import-Export Backend — Services Layer
=======================================

Service Inventory:
    - ProductService: catalog reads and product CRUD
    - ImportService:  stock transfers and the import ledger

Services receive the request's AsyncSession per call and hold only their
configuration, so one instance per application is enough (see
main.create_app).
"""
