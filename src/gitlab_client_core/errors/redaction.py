"""Keep credential secrets out of messages and log records."""

import logging
from collections.abc import Callable, Iterable

MASK = "***"


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each secret in ``text`` with ``***``."""
    for secret in sorted((s for s in secrets if s), key=len, reverse=True):
        text = text.replace(secret, MASK)
    return text


class SecretRedactionFilter(logging.Filter):
    """Logging filter that masks secrets in the rendered record.

    Attach it to a handler so it sees records from every logger::

        handler.addFilter(SecretRedactionFilter(client.auth.secrets))

    ``secrets`` is either an iterable or a zero-argument callable returning
    one, so refreshed tokens are picked up without re-installing the filter.
    """

    def __init__(self, secrets: Iterable[str] | Callable[[], Iterable[str]]):
        super().__init__()
        self._secrets = secrets

    def _current_secrets(self) -> list[str]:
        if callable(self._secrets):
            return list(self._secrets())
        return list(self._secrets)

    def filter(self, record: logging.LogRecord) -> bool:
        secrets = self._current_secrets()
        message = record.getMessage()
        redacted = redact(message, secrets)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True
