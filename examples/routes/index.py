"""Root route: mounted at the app mount itself."""

from fsroutes import Router

router = Router()


@router.get("/")
def home(request):
    return {"message": "Hello from the root route"}
