"""Contract declarations shared by the test modules."""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel

from api_contract.contract import Contract, api_group, endpoint, streaming_endpoint
from api_contract.errors import InvalidToken, NotFound
from api_contract.schema.base import AuthRequirement, Body, HTTPMethod, PathParam, QueryParam
from api_contract.server.registrar import GroupHandler


class Sort(str, Enum):
    ASC = "asc"
    DESC = "desc"


class User(BaseModel):
    id: str
    name: str


class NewUser(BaseModel):
    name: str


class Post(BaseModel):
    id: int
    title: str


class Tick(BaseModel):
    n: int


@api_group(path="/v1/users")
class Users:

    @endpoint(HTTPMethod.GET, output=list[User])
    class ListUsers(Contract):
        limit: int | None = None
        sort: Annotated[Sort, QueryParam(name="order")] = Sort.ASC
        since: datetime | None = None

    @endpoint(HTTPMethod.GET, path=":user_id", output=User)
    class GetUser(Contract):
        user_id: Annotated[str, PathParam()]

    @endpoint(HTTPMethod.POST, output=User)
    class CreateUser(Contract):
        payload: Annotated[NewUser, Body()]

    @endpoint(HTTPMethod.GET, path="/:user_id/posts/:post_id", output=Post)
    class GetPost(Contract):
        user_id: Annotated[str, PathParam()]
        post_id: Annotated[int, PathParam()]

    @endpoint(HTTPMethod.DELETE, path=":user_id")
    class DeleteUser(Contract):
        user_id: Annotated[str, PathParam()]


@api_group(path="/v1/public", auth=AuthRequirement.NONE)
class Public:

    @endpoint(HTTPMethod.GET, path="health", output=dict)
    class Health(Contract):
        pass

    @streaming_endpoint(HTTPMethod.GET, path="ticks", event=Tick)
    class Ticks(Contract):
        count: int = 3


class UsersHandler(GroupHandler, group=Users):
    def __init__(self):
        self.users = {"u1": User(id="u1", name="Ada")}
        self.seen_contexts = []

    async def list_users(self, input, context):
        users = sorted(self.users.values(), key=lambda u: u.id, reverse=input.sort is Sort.DESC)
        return users[: input.limit] if input.limit else users

    async def get_user(self, input, context):
        self.seen_contexts.append(context)
        user = self.users.get(input.user_id)
        if user is None:
            raise NotFound(f"No user {input.user_id}")
        return user

    async def create_user(self, input, context):
        user = User(id=f"u{len(self.users) + 1}", name=input.payload.name)
        self.users[user.id] = user
        return user

    async def get_post(self, input, context):
        return Post(id=input.post_id, title=f"post by {input.user_id}")

    async def delete_user(self, input, context):
        self.users.pop(input.user_id, None)


class PublicHandler(GroupHandler, group=Public):
    async def health(self, input, context):
        return {"status": "ok", "user": context.user_id}

    async def ticks(self, input, context):
        for n in range(input.count):
            yield Tick(n=n)


class TokenAuth:
    def __init__(self, tokens: dict[str, str]):
        self.tokens = tokens

    async def verify_token(self, token: str) -> str:
        if token not in self.tokens:
            raise InvalidToken("unknown token")
        return self.tokens[token]
