from __future__ import annotations

import enum

from app.infra.models import UserRole


class Capability(str, enum.Enum):
    DELETE_CLIENT = "DELETE_CLIENT"
    MANAGE_PRODUCTS = "MANAGE_PRODUCTS"  # criar/editar/apagar produto
    MANAGE_USERS = "MANAGE_USERS"


# tudo que não está aqui é liberado para qualquer usuário logado
ROLE_CAPABILITIES: dict[UserRole, set[Capability]] = {
    UserRole.ADMIN: {
        Capability.DELETE_CLIENT,
        Capability.MANAGE_PRODUCTS,
        Capability.MANAGE_USERS,
    },
    UserRole.USER: set(),
}


def can(role: UserRole | str | None, capability: Capability) -> bool:
    if role is None:
        return False
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return capability in ROLE_CAPABILITIES.get(role, set())
