"""
Readlog Backend - Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any work is done
    2. Request ID: correlation ID for logs and the X-Request-ID header
    3. Logging: access line with status and duration, tagged with the ID
"""
