"""Domain errors raised by the workday and notifier services."""


class WorkdayError(Exception):
    """Base class for workday tracker errors."""


class NoOpenSessionError(WorkdayError):
    """Raised when an action needs an open session and none exists."""


class TimestampOrderError(WorkdayError):
    """Raised when an action timestamp would break segment ordering."""


class StoreIntegrityError(WorkdayError):
    """Raised when persisted data violates a store invariant."""


class WorkdayContractError(WorkdayError):
    """Raised when an open session is in a state the state machine cannot handle."""


class SubscriberNotFoundError(WorkdayError):
    """Raised when no subscriber matches the given endpoint."""


class PushNotConfiguredError(WorkdayError):
    """Raised when push credentials are missing."""


class SubscriptionGoneError(WorkdayError):
    """Raised by a push transport when the endpoint no longer exists."""
