"""Gated by the directory-based environment map in app.py."""

from fsroutes import Router

router = Router()


@router.get("/")
def debug_info(request):
    return {"debug": True}
