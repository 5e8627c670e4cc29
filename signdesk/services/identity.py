import getpass

from signdesk.core.workflow.collaborators import UserRef


class StaticIdentity:
    """Identity provider that always returns the same user."""

    def __init__(self, user: UserRef = None):
        if user is None:
            name = getpass.getuser()
            user = UserRef(id=name, name=name, role="user")
        self.user = user

    def current_user(self) -> UserRef:
        return self.user
