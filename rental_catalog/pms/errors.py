"""Errors raised by the PMS client."""


class UpstreamError(Exception):
    """A PMS request failed.

    ``status_code`` is the HTTP status of a non-2xx response, or ``None`` when
    the request never produced one (connect error, timeout). ``body`` holds the
    raw response text or the transport error message.
    """

    def __init__(self, status_code: int | None, body: str, url: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        if status_code is None:
            message = f"PMS API request failed: {body}"
        else:
            message = f"PMS API error {status_code}: {body}"
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
