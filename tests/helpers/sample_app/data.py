"""Declared-field types: dataclasses, msgspec structs and pydantic models."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, ClassVar

import msgspec
import pydantic

from specforge.contracts import Nullable, Required


class Role(Enum):
    MEMBER = "member"
    ADMIN = "admin"


@dataclass
class AuthorData:
    id: int
    name: str
    books: list[BookData] = field(default_factory=list)


@dataclass
class BookData:
    title: str
    author: AuthorData | None = None


@dataclass
class AddressData:
    street: str
    city: str
    postcode: str | None = None


class TagData(msgspec.Struct):
    label: str
    weight: float = 1.0


class ProfileModel(pydantic.BaseModel):
    website: str
    bio: str | None = None


@dataclass
class UserData:
    """User payload.

    Attributes
    ----------
    tags : list[TagData]
        Tags attached to the user.
    """

    name: str
    email: str
    age: int | None
    nickname: Annotated[str, Nullable()]
    referrer_id: Annotated[int | None, Required()]
    tags: list
    address: AddressData
    role: Role
    joined_at: dt.datetime
    profile: ProfileModel | None = None
    kind: ClassVar[str] = "user"
    _secret: str = ""


@dataclass
class NodeData:
    value: int
    children: list[NodeData] = field(default_factory=list)
    parent: NodeData | None = None
