"""
Readlog Backend - Services Layer
=================================

What:  Business logic between routes (HTTP) and the persistence gateway.
How:   Services are stateless singletons; each call receives the request's
       PersistenceGateway, applies the rules, and returns response schemas
       or raises application exceptions.

Service Inventory:
    - UserService:   registration, login, lookup, update, delete
    - RecordService: filtered listing, create, progress update, delete
"""
