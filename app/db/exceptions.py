class NotFoundError(Exception):
    pass


class ConflictError(Exception):
    pass


class InvalidOperationError(Exception):
    pass


class PermissionDeniedError(Exception):
    pass
