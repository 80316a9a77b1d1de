# chroma_sdk/auth.py
# SPDX-License-Identifier: Apache-2.0
"""
Authentication methods and header construction.

Exactly one method is active per client. The method is chosen when the client
is built and applied identically to every request, including the identity
lookup performed during construction.

    NoAuth()                                  no header
    BasicAuth("user", "pass")                 Authorization: Basic base64(user:pass)
    TokenAuth("tok")                          Authorization: Bearer tok
    TokenAuth("tok", TokenHeader.X_CHROMA_TOKEN)   X-Chroma-Token: tok
"""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass, field
from typing import Dict, Union

from chroma_sdk.errors import BadConfig


class TokenHeader(str, enum.Enum):
    """Where a token credential is placed."""
    AUTHORIZATION = "Authorization"
    X_CHROMA_TOKEN = "X-Chroma-Token"


@dataclass(frozen=True)
class NoAuth:
    pass


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class TokenAuth:
    token: str = field(repr=False)
    header: TokenHeader = TokenHeader.AUTHORIZATION


AuthMethod = Union[NoAuth, BasicAuth, TokenAuth]


def auth_headers(auth: AuthMethod) -> Dict[str, str]:
    """Return the headers that implement `auth`."""
    if isinstance(auth, NoAuth):
        return {}
    if isinstance(auth, BasicAuth):
        credentials = base64.b64encode(f"{auth.username}:{auth.password}".encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {credentials}"}
    if isinstance(auth, TokenAuth):
        header = TokenHeader(auth.header)
        if header is TokenHeader.AUTHORIZATION:
            return {"Authorization": f"Bearer {auth.token}"}
        return {TokenHeader.X_CHROMA_TOKEN.value: auth.token}
    raise BadConfig(
        f"unsupported auth method {type(auth).__name__}",
        details={"auth": type(auth).__name__},
    )


__all__ = ["TokenHeader", "NoAuth", "BasicAuth", "TokenAuth", "AuthMethod", "auth_headers"]
