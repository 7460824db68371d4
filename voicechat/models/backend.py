"""Backend request/response models."""

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel


class ChatRequest(BaseModel):
    """Body of the upload request."""
    audio_base64: str


class ChatResponse(BaseModel):
    """Body of a successful backend reply."""
    response: str


@dataclass(frozen=True)
class BackendSuccess:
    """The backend answered with a reply text."""
    text: str


@dataclass(frozen=True)
class BackendFailure:
    """The exchange failed; `detail` is human readable."""
    detail: str
    status: Optional[int] = None


BackendResult = Union[BackendSuccess, BackendFailure]
