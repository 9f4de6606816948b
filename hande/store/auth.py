"""Auth slice: signed-in user, role profiles and bearer token."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from hande.domain.entities import AuthResponse, DriverProfile, RiderProfile, User
from hande.domain.enums import UserType

from .core import Slice


@dataclass(frozen=True)
class AuthState:
    user: Optional[User] = None
    rider: Optional[RiderProfile] = None
    driver: Optional[DriverProfile] = None
    token: Optional[str] = None
    user_type: UserType = UserType.RIDER
    is_authenticated: bool = False
    is_loading: bool = False


auth_slice: Slice[AuthState] = Slice("auth", AuthState())


@auth_slice.reducer
def set_credentials(state: AuthState, auth: AuthResponse) -> AuthState:
    return replace(
        state,
        user=auth.user,
        token=auth.token,
        rider=auth.rider,
        driver=auth.driver,
        user_type=(
            UserType.DRIVER if auth.user.user_type == UserType.DRIVER else UserType.RIDER
        ),
        is_authenticated=True,
        is_loading=False,
    )


@auth_slice.reducer
def restore_token(state: AuthState, token: Optional[str]) -> AuthState:
    return replace(state, token=token, is_authenticated=token is not None)


@auth_slice.reducer
def set_user_type(state: AuthState, user_type: UserType) -> AuthState:
    return replace(state, user_type=UserType(user_type))


@auth_slice.reducer
def update_user(state: AuthState, changes: dict) -> AuthState:
    if state.user is None:
        return state
    return replace(state, user=state.user.model_copy(update=changes))


@auth_slice.reducer
def update_driver(state: AuthState, changes: dict) -> AuthState:
    if state.driver is None:
        return state
    return replace(state, driver=state.driver.model_copy(update=changes))


@auth_slice.reducer
def set_auth_loading(state: AuthState, loading: bool) -> AuthState:
    return replace(state, is_loading=loading)


@auth_slice.reducer
def logout(state: AuthState, _=None) -> AuthState:
    return AuthState()
