"""Only registered in development."""

from fsroutes import Router

router = Router()


@router.get("/")
def search_posts(request):
    return []


route_options = {"environments": ["development"]}
