"""
Auth endpoints
==============

POST /api/v1/auth/login        -- email / password sign-in
POST /api/v1/auth/register     -- create a rider or driver account
POST /api/v1/auth/google       -- exchange a Google identity for a session
POST /api/v1/auth/switch-role  -- flip between rider and driver
POST /api/v1/auth/me           -- reload the signed-in profile
POST /api/v1/auth/logout       -- drop the session, stop background loops
"""

from fastapi import APIRouter, Depends, Request

from hande.api.context import SessionContext
from hande.api.dependencies import get_context
from hande.api.middleware import limiter
from hande.api.routes.rider import ERRORS
from hande.api.routes.session import build_state_response
from hande.api.schemas import (
    GoogleSignInRequest,
    LoginRequest,
    RegisterRequest,
    SessionStateResponse,
    SwitchRoleRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Sign in with email and password",
)
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.auth.login(body.email, body.password)
    return build_state_response(ctx.store.state)


@router.post(
    "/register",
    status_code=201,
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Create an account and sign in",
)
@limiter.limit("10/minute")
async def register(
    request: Request,
    body: RegisterRequest,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.auth.register(**body.model_dump())
    return build_state_response(ctx.store.state)


@router.post(
    "/google",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Sign in with a Google identity",
)
@limiter.limit("10/minute")
async def google_sign_in(
    request: Request,
    body: GoogleSignInRequest,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.auth.google_sign_in(**body.model_dump())
    return build_state_response(ctx.store.state)


@router.post(
    "/switch-role",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Switch the active role",
)
@limiter.limit("100/minute")
async def switch_role(
    request: Request,
    body: SwitchRoleRequest,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.auth.switch_role(body.role)
    return build_state_response(ctx.store.state)


@router.post(
    "/me",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Reload the signed-in profile",
)
@limiter.limit("100/minute")
async def refresh_profile(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.auth.refresh_profile()
    return build_state_response(ctx.store.state)


@router.post(
    "/logout",
    response_model=SessionStateResponse,
    summary="Sign out",
)
@limiter.limit("100/minute")
async def logout(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.rider.close()
    await ctx.driver.close()
    await ctx.auth.logout()
    return build_state_response(ctx.store.state)
