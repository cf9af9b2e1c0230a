"""
Exception classes raised by the Blog API.

Callers distinguish three failure kinds:

* ``ValidationError``: a payload is missing a required field or carries
  an invalid value.  ``messages`` maps each offending field to a list of
  human-readable messages.
* ``InvalidPostIdError``: an identifier that can never name a post.
  Well-formed but unknown ids are *not* errors; lookups return ``None``.
* ``StoreUnavailableError``: the document store could not be reached or
  failed while executing an operation.  Never retried by the service.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class BlogAPIException(Exception):
    """Base class for all exceptions raised within the Blog API"""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args)

        self.extra_info = kwargs.get("extra_info", None)

    def __reduce__(self):
        return (self.__class__, self.args)


class ValidationError(BlogAPIException):
    """Invalid data was supplied for a post"""

    def __init__(
        self, messages: Dict[str, List[str]], traceback: Optional[str] = None, **kwargs: Any
    ) -> None:
        logger.debug("Validation failed: %s", messages)

        self.messages = messages
        self.traceback = traceback

        super().__init__(**kwargs)

    def __str__(self) -> str:
        return f"{dict(self.messages)}"

    def __reduce__(self):
        return (self.__class__, (self.messages,))


class InvalidPostIdError(BlogAPIException, LookupError):
    """Identifier is not a syntactically valid post id"""


class StoreUnavailableError(BlogAPIException):
    """Document store is not connected or failed to execute an operation"""
