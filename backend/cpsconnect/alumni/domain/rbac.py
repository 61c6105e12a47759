"""Caller identity passed explicitly into moderation and contact operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cpsconnect.infra.auth import AuthenticatedUser


@dataclass(frozen=True, slots=True)
class Actor:
	id: str
	is_admin: bool = False
	is_superadmin: bool = False
	name: Optional[str] = None
	email: Optional[str] = None

	@property
	def can_moderate(self) -> bool:
		return self.is_admin or self.is_superadmin

	@classmethod
	def from_user(cls, user: AuthenticatedUser) -> "Actor":
		return cls(
			id=user.id,
			is_admin=user.is_admin,
			is_superadmin=user.is_superadmin,
			name=user.display_name,
			email=user.email,
		)
