"""Instance metadata snapshot"""

from dataclasses import dataclass

UNKNOWN = "unknown"


@dataclass(frozen=True)
class InstanceMetadata:
    """Immutable metadata snapshot, replaced wholesale on refresh."""
    instance_id: str
    availability_zone: str
    fetched_at: float  # epoch seconds

    @classmethod
    def empty(cls) -> "InstanceMetadata":
        """Placeholder used before the first lookup; always stale."""
        return cls(instance_id=UNKNOWN, availability_zone=UNKNOWN, fetched_at=0.0)

    @property
    def is_known(self) -> bool:
        return self.instance_id != UNKNOWN

    @property
    def fetched_at_ms(self) -> int:
        return int(self.fetched_at * 1000)
