"""In-memory collector adapter."""


class InMemorySession:
    """Session that appends every payload to its collector."""

    def __init__(self, collector: "InMemoryCollector") -> None:
        self._collector = collector
        self.closed = False

    async def send(self, payload: bytes) -> None:
        """Record a payload."""
        if self._collector.fail_send:
            raise ConnectionResetError("in-memory collector dropped the write")
        self._collector.payloads.append(payload)

    async def close(self) -> None:
        """Mark the session closed."""
        self.closed = True


class InMemoryCollector:
    """In-memory implementation of CollectorPort.

    Stores every payload it receives. Suitable for testing and for running
    the daemon without a collector.

    Attributes:
        payloads: Payloads received, in order.
        refuse: When True, open() fails as if the collector were down.
        fail_send: When True, send() fails after the session is open.
    """

    def __init__(self) -> None:
        self.payloads: list[bytes] = []
        self.sessions: list[InMemorySession] = []
        self.refuse = False
        self.fail_send = False

    def __str__(self) -> str:
        return "in-memory"

    async def open(self) -> InMemorySession:
        """Open a session, or raise ConnectionRefusedError when refusing."""
        if self.refuse:
            raise ConnectionRefusedError("in-memory collector is refusing connections")
        session = InMemorySession(self)
        self.sessions.append(session)
        return session

    @property
    def lines(self) -> list[str]:
        """All received lines, without trailing newlines."""
        return [
            line
            for payload in self.payloads
            for line in payload.decode("utf-8").splitlines()
        ]
