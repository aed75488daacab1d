"""
Caller identity for protected routes (bearer access-token verification).
"""
