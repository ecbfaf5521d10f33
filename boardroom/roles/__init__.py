"""Example roles."""

from .ceo import ceo_role
from .cfo import cfo_role
from .cmo import cmo_role
from .cto import cto_role
from .defaults import default_roles, provision_agents

__all__ = [
    "ceo_role",
    "cfo_role",
    "cmo_role",
    "cto_role",
    "default_roles",
    "provision_agents",
]
