import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .auth import AuthedOrganization, require_organization
from .config import get_settings
from .context import set_request_context
from .errors import RuleConfigError, UserNotFoundError
from .ext.registry import get_evaluator_registry, get_storage
from .http import ok, fail
from .logging import configure_logging, log_event
from .permissions import editor_image_allowed
from .schemas import ContentCreateRequest, EditorImageRequest, RulesConfigRequest, UserCreateRequest
from .scoring import compute_score, load_rules
from .utils import gen_request_id

app = FastAPI(title="Autoblock Scores", version="0.1.0")


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    get_storage()


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or gen_request_id()
    set_request_context(request_id, user_id=None, organization_id=None)
    start = time.time()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = int((time.time() - start) * 1000)
        log_event("api.request", path=request.url.path, status=500, duration_ms=duration_ms, request_id=request_id)
        raise
    duration_ms = int((time.time() - start) * 1000)
    log_event("api.request", path=request.url.path, status=response.status_code, duration_ms=duration_ms, request_id=request_id)
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    log_event("api.error", path=request.url.path, status=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=fail("http_error", "Request error", detail=exc.detail),
    )


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    log_event("api.error", path=request.url.path, status=422)
    return JSONResponse(
        status_code=422,
        content=fail("validation_error", "Validation failed", detail=jsonable_encoder(exc.errors())),
    )


@app.exception_handler(UserNotFoundError)
async def user_not_found(request: Request, exc: UserNotFoundError):
    log_event("api.error", path=request.url.path, status=404)
    return JSONResponse(status_code=404, content=fail(exc.code, "User not found", detail=exc.user_id))


@app.exception_handler(RuleConfigError)
async def invalid_rules(request: Request, exc: RuleConfigError):
    log_event("api.error", path=request.url.path, status=422)
    return JSONResponse(status_code=422, content=fail(exc.code, str(exc), detail=exc.detail))


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log_event("api.error", path=request.url.path, status=500)
    return JSONResponse(status_code=500, content=fail("internal_error", "Internal error", detail=None))


def _org_user(user_id: str, org: AuthedOrganization) -> dict:
    user = get_storage().get_user(user_id)
    if not user or user["organization_id"] != org.organization_id:
        raise UserNotFoundError(user_id)
    return user


@app.get("/health", response_model=None)
def health():
    settings = get_settings()
    return ok({"status": "ok", "db_path": str(settings.db_path)})


@app.get("/capabilities", response_model=None)
def capabilities():
    settings = get_settings()
    return ok({
        "backend": settings.backend,
        "rules_var": settings.rules_var,
        "rule_types": get_evaluator_registry().types(),
    })


@app.get("/metrics", response_model=None)
def metrics():
    return ok(get_storage().metrics())


@app.get("/config/rules", response_model=None)
def rules_get(org: AuthedOrganization = Depends(require_organization)):
    settings = get_settings()
    raw = get_storage().get_config(org.organization_id, settings.rules_var)
    rules = load_rules(raw)
    return ok({"rules": [rule.model_dump() for rule in rules]})


@app.put("/config/rules", response_model=None)
def rules_set(payload: RulesConfigRequest, org: AuthedOrganization = Depends(require_organization)):
    settings = get_settings()
    rules = load_rules(payload.rules)
    get_storage().set_config(org.organization_id, settings.rules_var, [rule.model_dump() for rule in rules])
    return ok({"status": "ok", "rules": len(rules)})


@app.post("/users", response_model=None)
def users_create(payload: UserCreateRequest, org: AuthedOrganization = Depends(require_organization)):
    storage = get_storage()
    existing = storage.get_user(payload.user_id)
    if existing and existing["organization_id"] != org.organization_id:
        raise HTTPException(status_code=409, detail="User belongs to another organization")
    storage.create_user({**payload.model_dump(), "organization_id": org.organization_id})
    return ok({"status": "ok", "user_id": payload.user_id})


@app.post("/users/{user_id}/contents", response_model=None)
def contents_create(user_id: str, payload: ContentCreateRequest, org: AuthedOrganization = Depends(require_organization)):
    _org_user(user_id, org)
    content_id = get_storage().add_content(user_id, payload.kind, payload.body)
    return ok({"status": "ok", "content_id": content_id})


@app.get("/users/{user_id}/autoblock_scores", response_model=None)
def user_scores(user_id: str, org: AuthedOrganization = Depends(require_organization)):
    _org_user(user_id, org)
    result = compute_score(user_id)
    return ok({"user_id": user_id, "scores": result.as_dict()})


@app.post("/permissions/editor_image", response_model=None)
def editor_image(payload: EditorImageRequest, org: AuthedOrganization = Depends(require_organization)):
    user = _org_user(payload.user_id, org) if payload.user_id else None
    allowed = editor_image_allowed(payload.subject, user, payload.config)
    return ok({"subject": payload.subject, "allowed": bool(allowed)})

