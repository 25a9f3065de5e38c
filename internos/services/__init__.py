"""
Business logic for InternOS.

Services sit between the web routers and the repositories and raise
ServiceError subclasses that map onto HTTP responses.
"""
