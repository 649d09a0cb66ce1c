# core/errors.py


class AssistantError(Exception):
    """
    Base for every error raised by the assistant core.
    """

    error_type = "assistant_error"


# -----------------------------
# Classification
# -----------------------------
class ClassifierError(AssistantError):
    """Remote classification unavailable or malformed."""

    error_type = "classifier_error"


# -----------------------------
# Dispatch (contract errors, raised before any Task exists)
# -----------------------------
class UnroutableIntent(AssistantError):
    error_type = "unroutable_intent"

    def __init__(self, tag):
        self.tag = tag
        super().__init__(f"No capability provider is routed for intent '{tag}'")


class IncompleteRequest(AssistantError):
    error_type = "incomplete_request"

    def __init__(self, field: str, tag=None):
        self.field = field
        self.tag = tag
        super().__init__(f"Missing required field '{field}'")


# -----------------------------
# Providers (operational failures, folded into Task.fail)
# -----------------------------
class ProviderError(AssistantError):
    error_type = "provider_error"


class ProviderUnavailable(ProviderError):
    error_type = "provider_unavailable"


class ProviderRejected(ProviderError):
    error_type = "provider_rejected"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


# -----------------------------
# Task Registry misuse
# -----------------------------
class InvalidTransition(AssistantError):
    error_type = "invalid_transition"

    def __init__(self, task_id: str, current, target):
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(
            f"Task {task_id} cannot move from '{getattr(current, 'value', current)}' "
            f"to '{getattr(target, 'value', target)}'"
        )


class TaskNotFound(AssistantError):
    error_type = "task_not_found"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} does not exist")
