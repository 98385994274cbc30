"""Error types shared across services and adapters."""

from trader_bot.domain.ledger import CodeCheckResult


class InputValidationError(ValueError):
    """Raised when a user reply is not a valid id or code."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RemoteCallFailed(RuntimeError):
    """Raised when a ledger API call fails at the transport or HTTP level."""

    def __init__(self, label: str, detail: str | None = None) -> None:
        text = f"{label} call failed"
        if detail:
            text = f"{text}: {detail}"
        super().__init__(text)
        self.label = label
        self.detail = detail


class DomainRejected(RuntimeError):
    """Raised when a ledger answer forbids continuing the current flow."""

    def __init__(self, result: str, check: CodeCheckResult | None = None) -> None:
        super().__init__(result)
        self.result = result
        self.check = check


class StorageUnavailable(RuntimeError):
    """Raised when the operation log backend cannot be reached."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Operation log {operation} failed")
        self.operation = operation
