"""Shared schema exports."""

from .account import RECEIVER_ROLES, Account, Role
from .auth import AuthResponse, LoginRequest, ProfileUpdateRequest, RegisterRequest, Token
from .receivers import ReceiverMatch, ReceiverResponse, SearchParams, SearchRequest, SearchResponse

__all__ = [
    "Account",
    "AuthResponse",
    "LoginRequest",
    "ProfileUpdateRequest",
    "RECEIVER_ROLES",
    "ReceiverMatch",
    "ReceiverResponse",
    "RegisterRequest",
    "Role",
    "SearchParams",
    "SearchRequest",
    "SearchResponse",
    "Token",
]
