class MembershipError(Exception):
    """Base class for team membership outcomes other than success."""
    kind = 'membership_error'

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"success": False, "kind": self.kind, "message": self.message}


class NotFound(MembershipError):
    kind = 'not_found'


class TeamNotFound(NotFound):
    def __init__(self, message="Team not found"):
        super().__init__(message)


class UserNotFound(NotFound):
    def __init__(self, message="User not found"):
        super().__init__(message)


class DuplicateName(MembershipError):
    kind = 'duplicate_name'

    def __init__(self, name):
        super().__init__("Team already exists")
        self.name = name


class BadRequest(MembershipError):
    kind = 'bad_request'


class StoreError(MembershipError):
    """A persistence failure that is not otherwise classified."""
    kind = 'store_error'


class PartialFailure(MembershipError):
    """The team write of add-user was committed but the user write was not.

    The team lists ``email`` while the user does not point back at the team,
    so a blind retry would append the email a second time.
    """
    kind = 'partial_failure'

    def __init__(self, team, email, cause):
        super().__init__(
            f"Team {team['_id']} lists {email} but the user record was not updated"
        )
        self.team = team
        self.email = email
        self.cause = cause

    def to_dict(self):
        data = super().to_dict()
        data.update({"team": self.team, "email": self.email})
        return data


class ValidationFailed(MembershipError):
    """Raised by the request validators before any service call."""
    kind = 'validation_failed'

    def __init__(self, param, message):
        super().__init__(message)
        self.param = param

    def to_dict(self):
        return {"msg": self.message, "param": self.param}
