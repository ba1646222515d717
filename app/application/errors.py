"""
Errors shared by use cases (mapped to HTTP in app.main)
"""


class NotFoundError(LookupError):
    """Entity absent or not owned by the caller"""
    pass
