"""Exceptions that short-circuit request handling, mapped to responses in actions.py"""


class NoAccessError(Exception):
    """The signed in user is not allowed to perform the requested operation (HTTP 403)"""


class NotFoundError(Exception):
    """The requested resource does not exist, or its existence must not be revealed (HTTP 404)"""


def forbidden():
    raise NoAccessError()


def not_found():
    raise NotFoundError()
