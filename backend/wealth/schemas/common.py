"""Response bodies shared by several routers."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Acknowledgement for operations that leave nothing to return,
    e.g. a redemption that emptied and removed the position."""

    message: str
