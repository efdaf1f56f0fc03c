from fastapi import Request

from src.oauth.storage import OAuthStorage


async def get_oauth_storage(request: Request) -> OAuthStorage:
    """
    Provide the OAuthStorage stored on app.state.
    """
    storage = getattr(request.app.state, "oauth_storage", None)
    if storage is None:
        raise RuntimeError(
            "OAuth storage is not initialized. Ensure startup lifecycle ran."
        )
    return storage
