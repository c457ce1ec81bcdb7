"""Errors raised by relationship inference.

Absence of a relationship is never an error; these only signal caller misuse.
"""

from __future__ import annotations


class InferenceError(Exception):
    code = "INFERENCE_FAILED"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class MemberNotFoundError(InferenceError):
    code = "MEMBER_NOT_FOUND"

    def __init__(self, member_id: str) -> None:
        super().__init__(f"Family member with ID {member_id} not found")
        self.member_id = member_id


class TreeNotFoundError(InferenceError):
    code = "TREE_NOT_FOUND"

    def __init__(self, tree_id: str) -> None:
        super().__init__(f"Family tree with ID {tree_id} not found")
        self.tree_id = tree_id
