from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, List, Optional

# Field presence and ID formats are checked by the order controller so that
# clients get the same messages whether a field is missing or malformed.

class RegistrationIn(BaseModel):
    event_id: Any = None
    team_members: Optional[List[Any]] = None
    selected_domain: Optional[str] = None
    selected_ps: Optional[str] = Field(None, alias="selectedPS")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class OrderCreate(BaseModel):
    registrations: Optional[List[RegistrationIn]] = None
    transaction_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class OrderReject(BaseModel):
    reason: Optional[str] = None

    class Config:
        extra = "ignore"
