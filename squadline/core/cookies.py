"""Auth cookie helpers."""

from fastapi import Response

from squadline.core.config import get_settings


def set_auth_cookie(response: Response, token: str) -> None:
    """Set the http-only auth cookie; strict + secure in production, lax otherwise."""
    settings = get_settings()
    max_age = settings.JWT_EXPIRE_DAYS * 24 * 60 * 60
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=max_age,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    """Expire the auth cookie using the attributes it was set with."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
