class RelayError(Exception):
    pass

class StartupConfigError(RelayError):
    pass

class AuthorizationError(RelayError):
    def __init__(self, user_id:int):
        super().__init__(f"user {user_id} is not allowed to store media")
        self.user_id = user_id

class MembershipCheckError(RelayError):
    pass

class ArchiveError(RelayError):
    pass

class PersistenceError(RelayError):
    pass
