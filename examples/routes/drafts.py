"""Scanned and reported, never bound."""

from fsroutes import Router

router = Router()


@router.get("/")
def drafts(request):
    return []


route_options = {"skip": True}
