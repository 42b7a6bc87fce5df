"""
Route-role schemas

RouteRole is the unit of the authorization matrix. It is frozen, so equality
and hashing go by (route, role) value and sets collapse duplicates correctly.
"""
from pydantic import BaseModel, ConfigDict, Field


class RouteRole(BaseModel):
    model_config = ConfigDict(frozen=True)

    route: str = Field(..., description="Application path, e.g. /proyectos")
    role: str = Field(..., description="Role name that grants the route")
