import contextvars

request_id_var = contextvars.ContextVar("request_id", default=None)
user_id_var = contextvars.ContextVar("user_id", default=None)
organization_id_var = contextvars.ContextVar("organization_id", default=None)


def set_request_context(request_id: str | None, user_id: str | None = None, organization_id: str | None = None):
    request_id_var.set(request_id)
    user_id_var.set(user_id)
    organization_id_var.set(organization_id)


def get_request_id() -> str | None:
    return request_id_var.get()


def get_user_id() -> str | None:
    return user_id_var.get()


def get_organization_id() -> str | None:
    return organization_id_var.get()
