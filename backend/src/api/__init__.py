"""
API routers for care-team management.
"""
