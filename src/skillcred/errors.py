"""Exception types raised by skillcred."""


class SkillCredError(Exception):
    """Base class for all skillcred errors."""


class MissingReferenceError(SkillCredError):
    """A referenced record (person, skill, challenge, ...) does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class ComputationError(SkillCredError):
    """Unexpected fault while computing a score."""
