"""Verb functions without a router: GET /ping."""


def get(request):
    return {"pong": True}
