import logging

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from services.errors import StoreError
from utils.helpers import serialize_document, to_object_id

logger = logging.getLogger(__name__)


class TeamStore:
    def __init__(self, db):
        self.collection = db.teams

    async def all(self):
        try:
            cursor = self.collection.find({})
            teams = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"Failed to list teams: {e}") from e
        return [serialize_document(team) for team in teams]

    async def find(self, team_id):
        oid = to_object_id(team_id)
        if oid is None:
            return None
        try:
            team = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise StoreError(f"Failed to load team {team_id}: {e}") from e
        return serialize_document(team)

    async def find_by_name(self, name):
        try:
            team = await self.collection.find_one({"name": name})
        except PyMongoError as e:
            raise StoreError(f"Failed to look up team by name: {e}") from e
        return serialize_document(team)

    async def create(self, draft):
        team_data = dict(draft)
        try:
            result = await self.collection.insert_one(team_data)
        except PyMongoError as e:
            raise StoreError(f"Failed to create team: {e}") from e
        team_data['_id'] = result.inserted_id
        logger.debug(f"Inserted team {result.inserted_id}")
        return serialize_document(team_data)

    async def update(self, team_id, patch):
        """Apply ``patch`` with $set and return the document after the update."""
        oid = to_object_id(team_id)
        if oid is None:
            return None
        fields = {key: value for key, value in patch.items() if key != '_id'}
        try:
            team = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": fields},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to update team {team_id}: {e}") from e
        return serialize_document(team)

    async def delete(self, team_id):
        oid = to_object_id(team_id)
        if oid is None:
            return None
        try:
            team = await self.collection.find_one_and_delete({"_id": oid})
        except PyMongoError as e:
            raise StoreError(f"Failed to delete team {team_id}: {e}") from e
        return serialize_document(team)
