"""Domain errors raised by the permission matrix and its hierarchy gate."""


class StoreUnavailable(Exception):
    """Raised when the permission store cannot be read or written."""


class UnknownResourceKey(ValueError):
    """Raised when code references a resource key missing from the catalogue."""

    def __init__(self, resource_key: str):
        self.resource_key = resource_key
        super().__init__(f"Unknown resource key: {resource_key!r}")


class InsufficientRank(Exception):
    """Raised when a role tries to change permissions of an equal or higher role."""

    def __init__(self, actor_role: str | None, target_role: str | None, actor_rank: int, target_rank: int):
        self.actor_role = actor_role
        self.target_role = target_role
        self.actor_rank = actor_rank
        self.target_rank = target_rank
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.target_role == "creator":
            return "Cannot modify Creator permissions"
        return (
            "Insufficient permissions. You cannot edit roles equal to or above your rank. "
            f"(Your Rank: {self.actor_rank}, Target: {self.target_rank})"
        )


__all__ = ["StoreUnavailable", "UnknownResourceKey", "InsufficientRank"]
