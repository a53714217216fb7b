from __future__ import annotations

import uuid
from typing import Mapping


REQUEST_ID_HEADER = "X-Request-Id"


def resolve_request_id(headers: Mapping[str, str]) -> str:
    """Return the caller's ``X-Request-Id`` verbatim, or a fresh UUID4 when absent or empty.

    ``headers`` is expected to do case-insensitive lookups (Starlette ``Headers``).
    """

    request_id = headers.get(REQUEST_ID_HEADER)
    if request_id:
        return request_id
    return str(uuid.uuid4())
