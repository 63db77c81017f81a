"""
Readlog Backend - API Routes Package
=====================================

Route Inventory:
    - users.py:   GET/POST /users, GET/PUT/DELETE /users/{id}
    - auth.py:    POST /auth/login
    - records.py: GET/POST/PUT/DELETE /records, GET /records/detail
    - health.py:  GET /health, GET /ping

Routes are thin: decode the request, call a service with the request's
PersistenceGateway, wrap the result in the envelope.
"""
