"""
Archive Sync Client

Walks the remote FTP archive, compares each update file against the object
store and sends changed files to the upload server.
"""
