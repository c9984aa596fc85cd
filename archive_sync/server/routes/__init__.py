"""
Archive Sync Server - Routes Package

This package contains the API routers.
"""
