"""Session id minting for workflow attempts."""

import uuid


class SessionIdentity:
    """Stable session id for one workflow attempt.

    The id is minted once (from the OS random source via uuid4) and then
    returned unchanged for the rest of the attempt. An id supplied up front,
    e.g. from a resume link, is used as-is.
    """

    def __init__(self, session_id: str | None = None) -> None:
        self._session_id = session_id.strip() if session_id and session_id.strip() else None

    @property
    def minted(self) -> bool:
        return self._session_id is not None

    def ensure(self) -> str:
        """Return the attempt's session id, minting it on first call."""
        if self._session_id is None:
            self._session_id = uuid.uuid4().hex
        return self._session_id
