class StoreError(Exception):
    def __init__(self, operation: str, key: str, cause: Exception = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"Store {operation} failed for {key}: {cause}")


class DietPlanServiceError(Exception):
    def __init__(self, reason: str, details: dict = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(f"Diet plan service: {reason}")
