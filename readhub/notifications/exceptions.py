from chat.exceptions import ServiceError


class NotRecipient(ServiceError):
    code = "NOT_RECIPIENT"
    status = 403
    default_message = "This activity belongs to someone else"


class ActivityNotFound(ServiceError):
    code = "ACTIVITY_NOT_FOUND"
    status = 404
    default_message = "Activity not found"


class InvalidActor(ServiceError):
    code = "INVALID_ACTOR"
    default_message = "Unknown or inactive actor"


class InvalidActivityKind(ServiceError):
    code = "INVALID_ACTIVITY_KIND"
    default_message = "Unknown activity kind"


class InvalidFilter(ServiceError):
    code = "INVALID_FILTER"
    default_message = "Unknown activity filter"
