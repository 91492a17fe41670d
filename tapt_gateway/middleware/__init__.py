"""
Gateway Middleware

- security: allow-list CORS and security headers on every response
"""
