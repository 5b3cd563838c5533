import asyncio
import copy

import pytest
from bson import ObjectId

from services.errors import StoreError
from services.membership_service import MembershipService


class InMemoryTeamStore:
    """Async team store double; every call yields to the event loop once."""

    def __init__(self):
        self.documents = {}
        self.writes = 0

    async def all(self):
        await asyncio.sleep(0)
        return [copy.deepcopy(team) for team in self.documents.values()]

    async def find(self, team_id):
        await asyncio.sleep(0)
        return copy.deepcopy(self.documents.get(team_id))

    async def find_by_name(self, name):
        await asyncio.sleep(0)
        for team in self.documents.values():
            if team['name'] == name:
                return copy.deepcopy(team)
        return None

    async def create(self, draft):
        await asyncio.sleep(0)
        team = copy.deepcopy(draft)
        team['_id'] = str(ObjectId())
        self.documents[team['_id']] = team
        self.writes += 1
        return copy.deepcopy(team)

    async def update(self, team_id, patch):
        await asyncio.sleep(0)
        if team_id not in self.documents:
            return None
        self.documents[team_id].update(copy.deepcopy(patch))
        self.writes += 1
        return copy.deepcopy(self.documents[team_id])

    async def delete(self, team_id):
        await asyncio.sleep(0)
        self.writes += 1
        return self.documents.pop(team_id, None)


class InMemoryUserStore:
    def __init__(self):
        self.documents = {}
        self.fail_saves = False

    def add(self, email, team_id=None):
        user = {"_id": str(ObjectId()), "email": email, "team_id": team_id}
        self.documents[user['_id']] = user
        return copy.deepcopy(user)

    def by_email(self, email):
        for user in self.documents.values():
            if user['email'] == email:
                return user
        return None

    async def find(self, user_id):
        await asyncio.sleep(0)
        return copy.deepcopy(self.documents.get(user_id))

    async def find_by_email(self, email):
        await asyncio.sleep(0)
        return copy.deepcopy(self.by_email(email))

    async def affiliated(self):
        await asyncio.sleep(0)
        return [copy.deepcopy(u) for u in self.documents.values() if u.get('team_id')]

    async def save(self, user):
        await asyncio.sleep(0)
        if self.fail_saves:
            raise StoreError("connection reset while saving user")
        self.documents[user['_id']] = copy.deepcopy(user)


@pytest.fixture
def team_store():
    return InMemoryTeamStore()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def service(team_store, user_store):
    return MembershipService(team_store, user_store)


@pytest.fixture
def strict_service(team_store, user_store):
    return MembershipService(team_store, user_store, enforce_unique_rename=True)
