from pydantic import BaseModel


class LockHandle(BaseModel):
    """Proof of ownership of a lock lease.

    Attributes:
        key:   The locked resource key, e.g. "vault-index:Notes/Coffee.md".
        token: Random token identifying this lease; release only succeeds with it.
        ttl:   Lease length in seconds after which the lock expires on its own.
    """

    key: str
    token: str
    ttl: float
