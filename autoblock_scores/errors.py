class AutoblockError(Exception):
    code = "autoblock_error"


class UserNotFoundError(AutoblockError):
    code = "user_not_found"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class RuleConfigError(AutoblockError):
    """Stored rule configuration could not be turned into rule definitions."""

    code = "invalid_rules"

    def __init__(self, message: str, detail=None) -> None:
        super().__init__(message)
        self.detail = detail
