"""
===============================================================================
TARJETA CRC — api/user_routes.py (Usuarios y Autenticación)
===============================================================================

Responsabilidades:
  - Exponer login, registro y CRUD de usuarios bajo /api/v1.
  - Aplicar autorización por claims (bearer / self-or-admin / admin).
  - Acotar la paginación antes de llegar al servicio.

Patrones aplicados:
  - Adapter / Presentation Layer: traduce HTTP ↔ UserService.
  - Fail-safe security: sin token válido, se deniega por defecto.

Colaboradores:
  - application.UserService (vía app.state.container)
  - identity.auth_users: require_user, require_role
  - api.schemas: DTOs
  - api.exception_handlers: mapea la taxonomía de errores a HTTP
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, Request, status

from ..application import UserService
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES, forbidden
from ..domain.entities import TokenClaims, UserRole
from ..identity.auth_users import require_role, require_user
from .schemas import (
    AdminPingResponse,
    CreateUserRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)

router = APIRouter(prefix="/api/v1", responses=OPENAPI_ERROR_RESPONSES)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def get_user_service(request: Request) -> UserService:
    """Dependency FastAPI: UserService del container del proceso."""
    return request.app.state.container.users


def clamp_pagination(page: int, limit: int) -> tuple[int, int]:
    """page < 1 => 1; limit < 1 => default; limit > MAX => MAX."""
    page = page if page >= 1 else DEFAULT_PAGE
    if limit < 1:
        limit = DEFAULT_LIMIT
    return page, min(limit, MAX_LIMIT)


# -----------------------------------------------------------------------------
# Públicos
# -----------------------------------------------------------------------------
@router.post("/login", response_model=LoginResponse, tags=["auth"])
async def login(
    req: LoginRequest, users: UserService = Depends(get_user_service)
) -> LoginResponse:
    token = await users.login(req.email, req.password)
    return LoginResponse.from_token(token)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["users"],
)
async def create_user(
    req: CreateUserRequest, users: UserService = Depends(get_user_service)
) -> UserResponse:
    view = await users.create(req.to_command())
    return UserResponse.from_view(view)


# -----------------------------------------------------------------------------
# Autenticados
# -----------------------------------------------------------------------------
@router.get("/users", response_model=UserListResponse, tags=["users"])
async def list_users(
    page: int = Query(DEFAULT_PAGE),
    limit: int = Query(DEFAULT_LIMIT),
    _claims: TokenClaims = Depends(require_user()),
    users: UserService = Depends(get_user_service),
) -> UserListResponse:
    page, limit = clamp_pagination(page, limit)
    views = await users.list(offset=(page - 1) * limit, limit=limit)
    return UserListResponse(
        users=[UserResponse.from_view(v) for v in views], page=page, limit=limit
    )


@router.get("/users/{user_id}", response_model=UserResponse, tags=["users"])
async def get_user(
    user_id: int = Path(..., ge=1),
    _claims: TokenClaims = Depends(require_user()),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    view = await users.get_by_id(user_id)
    return UserResponse.from_view(view)


@router.put("/users/{user_id}", response_model=UserResponse, tags=["users"])
async def update_user(
    req: UpdateUserRequest,
    user_id: int = Path(..., ge=1),
    claims: TokenClaims = Depends(require_user()),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    is_admin = claims.role == UserRole.ADMIN
    if not is_admin and claims.user_id != user_id:
        raise forbidden("Solo podés modificar tu propio usuario.")
    if not is_admin and req.role != claims.role.value:
        raise forbidden("Rol insuficiente para cambiar el rol.")

    view = await users.update(req.to_command(user_id))
    return UserResponse.from_view(view)


@router.delete("/users/{user_id}", response_model=MessageResponse, tags=["users"])
async def delete_user(
    user_id: int = Path(..., ge=1),
    _claims: TokenClaims = Depends(require_role(UserRole.ADMIN)),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    await users.delete(user_id)
    return MessageResponse(message="user deleted successfully")


@router.get("/auth/me", response_model=MeResponse, tags=["auth"])
async def me(claims: TokenClaims = Depends(require_user())) -> MeResponse:
    return MeResponse.from_claims(claims)


@router.get("/admin/ping", response_model=AdminPingResponse, tags=["admin"])
async def admin_ping(
    _claims: TokenClaims = Depends(require_role(UserRole.ADMIN)),
) -> AdminPingResponse:
    return AdminPingResponse(ok=True)
