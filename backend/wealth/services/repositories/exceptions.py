"""Lookup failures raised by the repositories.

Routers map NotFoundError to 404; services let it propagate untouched.
"""


class NotFoundError(LookupError):
    """A portfolio, position or global asset id that does not exist."""

    def __init__(self, entity_type: str, identifier: str | int):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(f"{entity_type} {identifier} does not exist")
