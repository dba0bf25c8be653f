"""Signed-cookie session helpers and the role guards built on them."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request

TRAINER_ROLES = {"trainer", "admin"}


@dataclass(frozen=True)
class SessionUser:
    id: int
    email: str
    role: str
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def start_session(request: Request, *, user_id: int, email: str, role: str, name: str) -> None:
    request.session.clear()
    request.session.update(
        {"user_id": user_id, "email": email, "role": role, "name": name}
    )


def end_session(request: Request) -> None:
    request.session.clear()


def client_ip(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_current_user(request: Request) -> SessionUser:
    user_id = request.session.get("user_id")
    role = request.session.get("role")
    if not user_id or not role:
        raise HTTPException(status_code=401, detail="Login required")
    return SessionUser(
        id=user_id,
        email=request.session.get("email", ""),
        role=role,
        name=request.session.get("name", ""),
    )


def require_trainer(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if user.role not in TRAINER_ROLES:
        raise HTTPException(status_code=403, detail="Trainer access required")
    return user


def require_member(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if user.role != "member":
        raise HTTPException(status_code=403, detail="Member access required")
    return user
