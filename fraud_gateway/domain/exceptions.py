"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class StorageError(DomainException):
    """Profile storage could not be read or written"""

    def __init__(self, operation: str, user_id: str, message: str = ""):
        self.operation = operation
        self.user_id = user_id
        detail = f"Profile {operation} failed for {user_id}"
        super().__init__(f"{detail}: {message}" if message else detail)
