"""
Archive Sync Server - Models Package

This package contains all data models for the Archive Sync server:
- auth: Authentication-related Pydantic models
- api: API endpoint Pydantic models
"""
