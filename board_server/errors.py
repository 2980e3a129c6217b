"""
Error types for Board Server.

This module defines all exception types raised by the service core:
- BoardError: Base exception
- InvalidMoveError: Move request that cannot be placed
- EntityNotFoundError: Unknown list or card
- ConflictError: Concurrent position write lost a race (retryable)
- DuplicateEntityError: Entity registered twice in the schema assembler

Invariants:
    - All errors inherit from BoardError
    - Errors include context for debugging
    - Error messages are actionable
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BoardError(Exception):
    """Base exception for all Board Server errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
        retryable: Whether the caller may retry the same request
    """

    retryable = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "BOARD_ERROR"
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to an API error body."""
        return {
            "error": self.message,
            "error_code": self.code,
            "details": self.details,
            "retryable": self.retryable,
        }


class InvalidMoveError(BoardError):
    """Move request cannot be placed.

    Raised when:
    - toIndex is missing (there is nowhere to insert)
    - A list is moved to a different board
    """

    def __init__(
        self,
        message: str,
        entity_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="INVALID_MOVE",
            details={"entity_id": entity_id},
        )
        self.entity_id = entity_id


class EntityNotFoundError(BoardError):
    """Entity not found.

    Raised when:
    - List doesn't exist
    - Card doesn't exist
    """

    def __init__(
        self,
        message: str,
        kind: str,
        entity_id: str,
    ) -> None:
        super().__init__(
            message,
            code="NOT_FOUND",
            details={
                "kind": kind,
                "entity_id": entity_id,
            },
        )
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(BoardError):
    """Container changed between the sibling read and the position write.

    Raised when:
    - Another writer bumped the container version first
    - Retries inside the move service were exhausted
    """

    retryable = True

    def __init__(
        self,
        message: str,
        container_id: str,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            code="CONFLICT",
            details={
                "container_id": container_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )
        self.container_id = container_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class DuplicateEntityError(BoardError):
    """Entity name registered twice in the schema assembler."""

    def __init__(self, entity_name: str) -> None:
        super().__init__(
            f"Entity '{entity_name}' is already registered",
            code="DUPLICATE_ENTITY",
            details={"entity_name": entity_name},
        )
        self.entity_name = entity_name
