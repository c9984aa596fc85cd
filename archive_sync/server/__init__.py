"""
Archive Sync Server

FastAPI application accepting validated archive file uploads and storing
them in the object store with project metadata.
"""
