"""
Wire models for the harvest API.

Requests carry the identity a caller asserts; responses carry the tasks
and products the compiled policies produced for it. Unknown request keys
are rejected.
"""
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class MachineIdentity(BaseModel):
    """Machine asserted by the caller."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1, description="Machine hostname or identifier")
    addresses: List[str] = Field(default_factory=list, description="Network addresses of the machine")
    labels: Dict[str, str] = Field(default_factory=dict, description="Free-form machine labels, e.g. {'role': 'db'}")


class UserIdentity(BaseModel):
    """User asserted by the caller."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1, description="User login name")
    groups: List[str] = Field(default_factory=list, description="Groups the user belongs to")


class HarvestRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    machine: MachineIdentity
    user: UserIdentity


class Task(BaseModel):
    """A work item for the machine to carry out."""
    model_config = ConfigDict(frozen=True)

    id: str
    params: Dict[str, str] = Field(default_factory=dict)


class Product(BaseModel):
    """An artifact delivered to the machine (config file, credential, ...)."""
    model_config = ConfigDict(frozen=True)

    name: str
    content: str


class HarvestResponse(BaseModel):
    tasks: List[Task] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
