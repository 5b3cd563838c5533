from pymongo.errors import PyMongoError

from services.errors import StoreError
from utils.helpers import serialize_document, to_object_id


class UserStore:
    def __init__(self, db):
        self.collection = db.users

    async def find(self, user_id):
        oid = to_object_id(user_id)
        if oid is None:
            return None
        try:
            user = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise StoreError(f"Failed to load user {user_id}: {e}") from e
        return serialize_document(user)

    async def find_by_email(self, email):
        try:
            user = await self.collection.find_one({"email": email})
        except PyMongoError as e:
            raise StoreError(f"Failed to look up user by email: {e}") from e
        return serialize_document(user)

    async def affiliated(self):
        """Users that currently reference a team"""
        try:
            cursor = self.collection.find({"team_id": {"$ne": None}})
            users = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"Failed to list affiliated users: {e}") from e
        return [serialize_document(user) for user in users]

    async def save(self, user):
        fields = {key: value for key, value in user.items() if key != '_id'}
        # Store the back-reference as an ObjectId, like the team's _id
        team_id = fields.get('team_id')
        fields['team_id'] = to_object_id(team_id) if team_id else None
        try:
            await self.collection.update_one(
                {"_id": to_object_id(user['_id'])},
                {"$set": fields}
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to save user {user['_id']}: {e}") from e
