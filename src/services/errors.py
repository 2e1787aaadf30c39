class ServiceError(Exception):
    pass


class RateLimitedError(ServiceError):
    pass


class MalformedResponseError(ServiceError):
    pass
