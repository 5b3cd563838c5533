import logging

from services.errors import (
    BadRequest,
    DuplicateName,
    PartialFailure,
    StoreError,
    TeamNotFound,
    UserNotFound,
)

# Team fields a caller may set; everything else in a request body is dropped
TEAM_FIELDS = ('name', 'description', 'users')


class MembershipService:
    """Team CRUD and membership management over a team and a user store.

    The rule kept here is that a user whose email is listed in
    ``team['users']`` has ``user['team_id'] == team['_id']``. The stores
    offer no transactions, so every operation is a sequence of single
    document reads and writes and the invariant can only be broken in the
    window between the two writes of :meth:`add_user_to_team`.
    """

    def __init__(self, team_store, user_store, enforce_unique_rename=False):
        self.teams = team_store
        self.users = user_store
        self.enforce_unique_rename = enforce_unique_rename
        self.logger = logging.getLogger(__name__)

    def _allowed_fields(self, data):
        allowed = {key: value for key, value in data.items() if key in TEAM_FIELDS}
        dropped = sorted(set(data) - set(allowed))
        if dropped:
            self.logger.warning(f"Ignoring non-patchable team fields: {dropped}")
        return allowed

    async def list_teams(self):
        return await self.teams.all()

    async def get_team(self, team_id):
        team = await self.teams.find(team_id)
        if not team:
            raise TeamNotFound()
        return team

    async def create_team(self, data):
        name = data['name']
        if await self.teams.find_by_name(name):
            self.logger.warning("Rejected create: team name already taken")
            self.logger.debug(f"Duplicate team name: {name}")
            raise DuplicateName(name)

        team_data = self._allowed_fields(data)
        team_data.update({
            "name": name,
            "users": [],
            "score": 0
        })
        team = await self.teams.create(team_data)
        self.logger.info(f"Created team {team['_id']}")
        return team

    async def update_team(self, team_id, patch):
        found_team = await self.teams.find(team_id)
        if not found_team:
            raise TeamNotFound()

        patch = self._allowed_fields(patch)

        # All listed users must resolve before anything is written.
        # NOTE: entries are looked up by user id while add_user_to_team stores emails.
        users = patch.get('users')
        if users is not None:
            for user_id in users:
                if not await self.users.find(user_id):
                    raise UserNotFound(f"User with id: {user_id} not found")

        name = patch.get('name')
        if name:
            await self._check_rename(team_id, name)

        team_data = dict(patch)
        team_data['name'] = name or found_team['name']
        team_data['users'] = users if users is not None else found_team['users']

        updated_team = await self.teams.update(team_id, team_data)
        if not updated_team:
            raise TeamNotFound()
        self.logger.info(f"Updated team {team_id}")
        return updated_team

    async def _check_rename(self, team_id, name):
        existing_team = await self.teams.find_by_name(name)
        if self.enforce_unique_rename:
            if existing_team and existing_team['_id'] != str(team_id):
                raise BadRequest(f"Team with name: {name} already exists")
        elif not existing_team:
            # Legacy behaviour: only names that already exist are accepted
            raise BadRequest(f"Team with name: {name} already exists")

    async def add_user_to_team(self, team_id, email):
        user = await self.users.find_by_email(email)
        if not user:
            raise UserNotFound()
        team = await self.teams.find(team_id)
        if not team:
            raise TeamNotFound()

        # No duplicate check and no version guard: concurrent calls on the
        # same team are last-writer-wins on the users list.
        users = list(team['users']) + [user['email']]
        updated_team = await self.teams.update(team_id, {"users": users})
        if not updated_team:
            raise TeamNotFound()

        user['team_id'] = updated_team['_id']
        try:
            await self.users.save(user)
        except StoreError as e:
            self.logger.error(
                f"Partial failure adding user {user['_id']} to team {updated_team['_id']}: {e}"
            )
            raise PartialFailure(updated_team, user['email'], e) from e

        self.logger.info(f"Added user {user['_id']} to team {updated_team['_id']}")
        return updated_team

    async def delete_team(self, team_id):
        team = await self.teams.find(team_id)
        if not team:
            raise TeamNotFound()
        # Members keep their team_id; see find_orphaned_references
        await self.teams.delete(team_id)
        self.logger.info(f"Deleted team {team_id} with {len(team['users'])} members")
        return team

    async def find_orphaned_references(self):
        """Report broken team/user cross references without repairing them.

        Returns a list of ``{"kind", "team_id", "email"}`` dicts where kind is
        ``missing_back_reference`` (a team lists an email whose user does not
        point back) or ``dangling_team_id`` (a user points at a team that no
        longer exists).
        """
        orphans = []
        teams = await self.teams.all()
        team_ids = {team['_id'] for team in teams}

        for team in teams:
            for email in team['users']:
                user = await self.users.find_by_email(email)
                if not user or user.get('team_id') != team['_id']:
                    orphans.append({
                        "kind": "missing_back_reference",
                        "team_id": team['_id'],
                        "email": email
                    })

        for user in await self.users.affiliated():
            if user['team_id'] not in team_ids:
                orphans.append({
                    "kind": "dangling_team_id",
                    "team_id": user['team_id'],
                    "email": user['email']
                })

        if orphans:
            self.logger.warning(f"Found {len(orphans)} orphaned team references")
        return orphans
