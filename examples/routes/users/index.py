"""Directory index: GET/POST /users."""

from fsroutes import Router

router = Router()

USERS = [{"id": "user_1", "name": "Ada"}, {"id": "user_2", "name": "Grace"}]


@router.get("/")
def list_users(request):
    return USERS


@router.post("/")
def create_user(request):
    return {"created": True}
