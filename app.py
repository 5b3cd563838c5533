from flask import Flask, request, jsonify
from pymongo import AsyncMongoClient
from dotenv import load_dotenv
import logging
from contextlib import asynccontextmanager

from models.team import TeamStore
from models.user import UserStore
from services.errors import MembershipError, PartialFailure, StoreError
from services.membership_service import MembershipService
from utils.helpers import get_env_flag, get_env_variable
from utils.validators import (
    validate_add_user,
    validate_create,
    validate_team_id,
    validate_update,
)

# Load environment variables
load_dotenv()

# Setup logging
logging.basicConfig(level=get_env_variable('LOG_LEVEL', 'INFO').upper())
logger = logging.getLogger(__name__)

STATUS_CODES = {
    'not_found': 404,
    'duplicate_name': 400,
    'bad_request': 400,
    'validation_failed': 422,
    'partial_failure': 500,
    'store_error': 500,
}

# Database configuration
def get_client():
    return AsyncMongoClient(
        get_env_variable('MONGODB_URI', 'mongodb://localhost:27017/'),
        serverSelectionTimeoutMS=int(get_env_variable('MONGODB_TIMEOUT_MS', 5000))
    )

def build_membership_service(client):
    db = client[get_env_variable('MONGODB_DB', 'team_management')]
    return MembershipService(
        TeamStore(db),
        UserStore(db),
        enforce_unique_rename=get_env_flag('ENFORCE_UNIQUE_RENAME')
    )

def create_app(membership_service=None):
    app = Flask(__name__)

    # Flask runs every async view on its own event loop and an AsyncMongoClient
    # is bound to the loop that first uses it, so the client lives per request.
    @asynccontextmanager
    async def membership_session():
        if membership_service is not None:
            yield membership_service
            return
        client = get_client()
        try:
            yield build_membership_service(client)
        finally:
            await client.close()

    @app.errorhandler(MembershipError)
    def handle_membership_error(error):
        status = STATUS_CODES.get(error.kind, 500)
        if isinstance(error, PartialFailure):
            logger.error(f"Partial failure on team {error.team['_id']}")
        elif isinstance(error, StoreError):
            logger.error(f"Store error: {error.message}")
        return jsonify(error.to_dict()), status

    @app.route('/teams', methods=['GET'])
    async def list_teams():
        async with membership_session() as service:
            teams = await service.list_teams()
        return jsonify(teams), 200

    @app.route('/teams/<team_id>', methods=['GET'])
    async def show_team(team_id):
        validate_team_id(team_id)
        async with membership_session() as service:
            team = await service.get_team(team_id)
        return jsonify(team), 200

    @app.route('/teams', methods=['POST'])
    async def create_team():
        body = validate_create(request.get_json(silent=True))
        async with membership_session() as service:
            team = await service.create_team(body)
        return jsonify(team), 200

    @app.route('/teams/<team_id>', methods=['PUT', 'PATCH'])
    async def update_team(team_id):
        validate_team_id(team_id)
        body = validate_update(request.get_json(silent=True))
        async with membership_session() as service:
            team = await service.update_team(team_id, body)
        return jsonify(team), 200

    @app.route('/teams/<team_id>/users', methods=['POST'])
    async def add_user(team_id):
        validate_team_id(team_id)
        body = validate_add_user(request.get_json(silent=True))
        async with membership_session() as service:
            team = await service.add_user_to_team(team_id, body['email'])
        return jsonify(team), 200

    @app.route('/teams/<team_id>', methods=['DELETE'])
    async def delete_team(team_id):
        validate_team_id(team_id)
        async with membership_session() as service:
            team = await service.delete_team(team_id)
        return jsonify(team), 200

    @app.route('/teams/orphans', methods=['GET'])
    async def orphaned_references():
        async with membership_session() as service:
            orphans = await service.find_orphaned_references()
        return jsonify(orphans), 200

    return app

if __name__ == '__main__':
    app = create_app()

    # Run the application
    port = int(get_env_variable('PORT', 7000))
    logger.info(f"Starting Flask app on port {port}")
    app.run(host='0.0.0.0', port=port)
