from fastapi import Request, Response

from config import settings


def get_store(request: Request):
    return request.app.state.store


def get_settings():
    return settings


def no_cache(response: Response):
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    response.headers["Surrogate-Control"] = "no-store"
