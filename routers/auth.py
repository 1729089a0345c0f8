from fastapi import APIRouter, Depends, HTTPException, Request, Response

from app.core.config import Settings, get_settings
from app.core.errors import error_detail
from app.core.rate_limit import auth_limit, limiter
from routers.dependencies import CurrentSession, get_auth_service, get_current_user
from schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from services.auth import AuthError, AuthResult, AuthService, EmailTakenError

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_info(request: Request) -> tuple[str | None, str | None]:
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


def _set_session_cookie(response: Response, session_id: str, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        session_id,
        max_age=settings.session_absolute_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        domain=settings.cookie_domain,
        path="/",
    )


def _clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        domain=settings.cookie_domain,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_samesite,
    )


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse(id=result.user.id, email=result.user.email, status=result.user.status)
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit(auth_limit)
async def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    ip_address, user_agent = _client_info(request)
    try:
        result = await auth.register(payload.email, payload.password, ip_address, user_agent)
    except EmailTakenError as exc:
        raise HTTPException(status_code=409, detail=error_detail(exc.code, str(exc))) from exc
    except AuthError as exc:
        raise HTTPException(status_code=400, detail=error_detail(exc.code, str(exc))) from exc

    _set_session_cookie(response, result.session_id, settings)
    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(auth_limit)
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    ip_address, user_agent = _client_info(request)
    try:
        result = await auth.login(payload.email, payload.password, ip_address, user_agent)
    except AuthError as exc:
        raise HTTPException(status_code=400, detail=error_detail(exc.code, str(exc))) from exc

    _set_session_cookie(response, result.session_id, settings)
    return _auth_response(result)


@router.post("/logout", status_code=204)
async def logout(
    current: CurrentSession = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> Response:
    await auth.logout(current.session_id)
    response = Response(status_code=204)
    _clear_session_cookie(response, settings)
    return response


@router.post("/logout-all", status_code=204)
async def logout_all(
    current: CurrentSession = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> Response:
    await auth.logout_all(current.user.id)
    response = Response(status_code=204)
    _clear_session_cookie(response, settings)
    return response


@router.get("/me", response_model=UserResponse)
async def me(current: CurrentSession = Depends(get_current_user)) -> UserResponse:
    return UserResponse(id=current.user.id, email=current.user.email, status=current.user.status)
