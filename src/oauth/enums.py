from enum import StrEnum


class KeyCategory(StrEnum):
    CLIENT = "client"
    AUTHORIZE = "auth"
    ACCESS = "access"  # Canonical access record, keyed by opaque id
    ACCESS_TOKEN = "access_token"  # Pointer: access token -> opaque id
    REFRESH_TOKEN = "refresh_token"  # Pointer: refresh token -> opaque id
