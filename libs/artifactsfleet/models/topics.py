"""Topic path constants and NATS subject conversion.

Topics use `/` separators (e.g., `/fleet/decisions`), while NATS uses `.`
separators (e.g., `fleet.decisions`). This module handles the conversion.
"""


class Topics:
    """Topic path constants for the fleet bus."""

    DECISIONS = "/fleet/decisions"

    @classmethod
    def decisions(cls, character: str) -> str:
        """Return the decision topic for a specific character."""
        return f"{cls.DECISIONS}/{character}"

    @classmethod
    def all_decisions(cls) -> str:
        """Wildcard topic matching every character's decisions."""
        return f"{cls.DECISIONS}/>"


def to_nats_subject(topic: str) -> str:
    """Convert a topic path to a NATS subject.

    `/fleet/decisions/alice` → `fleet.decisions.alice`
    """
    return topic.lstrip("/").replace("/", ".")


def from_nats_subject(subject: str) -> str:
    """Convert a NATS subject back to a topic path.

    `fleet.decisions.alice` → `/fleet/decisions/alice`
    """
    return "/" + subject.replace(".", "/")
