class EtcdClientError(Exception):
    """An etcd member could not be queried."""
    pass


class NotFoundError(EtcdClientError):
    """Endpoint path not served by the member."""
    pass


class AuthenticationError(EtcdClientError):
    """The member rejected the request (client auth is not supported)."""
    pass
