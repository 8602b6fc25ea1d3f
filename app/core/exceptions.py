"""
Domain exceptions.

Services raise these; controllers and the app-level exception handlers
decide what the client sees.  Login failures are deliberately collapsed
into one generic response at the boundary, so the distinct types exist
for logging and tests, never for the user.
"""


class AppError(Exception):
    """Base exception for all application errors."""

    pass


class UserNotFound(AppError):
    """No user record matches the given username."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User '{username}' not found")


class InvalidCredentials(AppError):
    """The password does not match the stored hash."""

    pass


class PasswordMismatch(AppError):
    """Password and its confirmation differ at registration."""

    pass


class DuplicateUser(AppError):
    """A user with this username already exists."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username '{username}' is already taken")


class Forbidden(AppError):
    """Authenticated, but the identity lacks the role the path requires."""

    def __init__(self, path: str, required_role: str):
        self.path = path
        self.required_role = required_role
        super().__init__(f"Role '{required_role}' required for {path}")


class TooManySessions(AppError):
    """The per-user session cap is reached and new logins are blocked."""

    def __init__(self, username: str, limit: int):
        self.username = username
        self.limit = limit
        super().__init__(f"Maximum of {limit} sessions reached for '{username}'")


class PasswordTooLong(AppError):
    """The password exceeds what bcrypt can hash without truncating."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Password must be at most {limit} bytes")
