class FetchError(RuntimeError):
    """Raised when flight history could not be retrieved from a provider."""


class AuthenticationError(FetchError):
    pass


class ResponseDecodeError(FetchError):
    pass
