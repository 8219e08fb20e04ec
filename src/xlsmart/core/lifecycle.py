from __future__ import annotations

from dataclasses import dataclass

from xlsmart.errors import InvalidStatusTransition

SESSION_ORDER = ("uploading", "analyzing", "standardizing", "completed")


@dataclass(slots=True)
class SessionLifecycle:
    status: str

    def can_move_to(self, target: str) -> bool:
        if target == "error":
            return True

        if self.status == "error":
            # caller-initiated retry of a failed standardization
            return target == "standardizing"

        if target not in SESSION_ORDER or self.status not in SESSION_ORDER:
            raise ValueError(f"unsupported session status '{target}'")

        return SESSION_ORDER.index(target) > SESSION_ORDER.index(self.status)

    def require(self, target: str) -> None:
        if not self.can_move_to(target):
            raise InvalidStatusTransition(
                f"upload session cannot move from '{self.status}' to '{target}'"
            )
