"""Activity repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ...models.activity import Activity


class ActivityRepository(Protocol):
    """Repository for activities and their completion records."""

    def get_by_id(self, activity_id: int, *, user_id: int) -> Optional[Activity]:
        """Retrieve an activity by ID."""
        ...

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Activity]:
        """Retrieve the first activity with an exact name."""
        ...

    def list_all(self, *, user_id: int, include_archived: bool = True) -> list[Activity]:
        """List activities, optionally skipping archived ones."""
        ...

    def create(self, activity: Activity, *, user_id: int) -> Activity:
        """Create a new activity."""
        ...

    def update(self, activity: Activity, *, user_id: int) -> Activity:
        """Update an existing activity."""
        ...

    def delete(self, activity_id: int, *, user_id: int) -> None:
        """Delete an activity together with its completion records."""
        ...

    def set_archived(
        self, activity_id: int, archived: bool, archived_at: Optional[datetime], *, user_id: int
    ) -> None:
        """Write the archived flag and timestamp."""
        ...

    # Completion operations
    def list_completions(self, activity_id: int, *, user_id: int) -> list[date]:
        """Return completed dates for one activity, ascending."""
        ...

    def list_all_completions(self, *, user_id: int) -> dict[int, list[date]]:
        """Return completed dates keyed by activity id."""
        ...

    def set_completion(self, activity_id: int, day: date, completed: bool, *, user_id: int) -> None:
        """Make the stored state for ``day`` equal ``completed``."""
        ...
