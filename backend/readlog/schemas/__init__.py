"""
Pydantic request/response schemas (the API contract).

Schemas are separate from the ORM models so the API controls exactly which
fields leave the server: UserResponse has no password field at all.
"""
