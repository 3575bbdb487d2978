"""
Authentication module for the clinical records platform.

This module provides authentication and authorization functionality including:
- Account registration with RUT and password validation
- Login with signed session tokens
- Password reset with single-use, expiring secrets
- Role-scoped authorization decisions
"""
