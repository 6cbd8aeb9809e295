from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional
import datetime as dt


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class TeamSize(CamelModel):
    min: int = Field(..., ge=1)
    max: int = Field(..., ge=1)


class Prize(CamelModel):
    position: int
    prize: float
    label: str


class ScheduleItem(CamelModel):
    round: int
    datetime: dt.datetime


class Rule(CamelModel):
    round: int
    round_name: str
    round_desc: Optional[str] = None
    round_rules: List[str] = []


class Platform(CamelModel):
    round: Optional[int] = None
    name: str
    link: str


class EventLink(CamelModel):
    name: str
    link: str


class ProblemStatement(CamelModel):
    ps_id: str = Field(..., min_length=1)
    title: str
    description: Optional[str] = None
    difficulty: Literal["Easy", "Medium", "Hard"] = "Medium"


class Domain(CamelModel):
    domain_id: str = Field(..., min_length=1)
    name: str
    description: Optional[str] = None
    problem_statements: List[ProblemStatement] = []


class EventCreate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    introduction: Optional[str] = None
    fees: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    team_size: Optional[TeamSize] = None
    venue: Optional[str] = None
    logo: Optional[str] = None
    contact: List[str] = []
    prizes: List[Prize] = []
    schedule: List[ScheduleItem] = []
    rules: List[Rule] = []
    platform: List[Platform] = []
    links: List[EventLink] = []
    is_active: bool = True
    is_hackathon: bool = False
    domains: List[Domain] = []
    max_cap: Optional[int] = Field(None, ge=1)


class EventUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    introduction: Optional[str] = None
    fees: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    team_size: Optional[TeamSize] = None
    venue: Optional[str] = None
    logo: Optional[str] = None
    contact: Optional[List[str]] = None
    prizes: Optional[List[Prize]] = None
    schedule: Optional[List[ScheduleItem]] = None
    rules: Optional[List[Rule]] = None
    platform: Optional[List[Platform]] = None
    links: Optional[List[EventLink]] = None
    is_active: Optional[bool] = None
    is_hackathon: Optional[bool] = None
    domains: Optional[List[Domain]] = None
    max_cap: Optional[int] = Field(None, ge=1)
