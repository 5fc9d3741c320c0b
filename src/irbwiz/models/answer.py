"""
Yes/No Answers

Every yes/no question in the wizard starts out unanswered, and stays that
way until the investigator picks a side. Reading an open question as "no"
would let a study skip a trigger it never ruled out, so rules combine
``Answer`` values instead of raw booleans:

    deception & ~debriefing     YES only when both are settled that way
    minors | prisoners          YES as soon as either is confirmed

Combining answers ranks them NO < UNANSWERED < YES: ``&`` keeps the
weakest, ``|`` the strongest, and ``~`` swaps YES and NO while an open
question stays open.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class Answer(Enum):
    """
    A yes/no question's current state.

    - YES: The investigator answered yes
    - NO: The investigator answered no
    - UNANSWERED: Still open (the default state of every question)
    """
    YES = True
    NO = False
    UNANSWERED = None

    @property
    def _rank(self) -> int:
        return _RANK[self]

    def __and__(self, other: Answer) -> Answer:
        if not isinstance(other, Answer):
            return NotImplemented
        return self if self._rank <= other._rank else other

    def __or__(self, other: Answer) -> Answer:
        if not isinstance(other, Answer):
            return NotImplemented
        return self if self._rank >= other._rank else other

    def __invert__(self) -> Answer:
        return _OPPOSITE[self]

    def __bool__(self) -> bool:
        """An open question has no truth value; callers must check it first."""
        if self is Answer.UNANSWERED:
            raise ValueError(
                "Question is still unanswered; check is_known before "
                "treating the answer as a bool."
            )
        return self is Answer.YES

    @classmethod
    def from_value(cls, value: Any) -> Answer:
        """
        Read a raw snapshot value.

        Only real booleans count as answers; ``None`` and anything else
        (strings, numbers, lists) read as UNANSWERED.
        """
        if value is True:
            return cls.YES
        if value is False:
            return cls.NO
        return cls.UNANSWERED

    @property
    def is_yes(self) -> bool:
        return self is Answer.YES

    @property
    def is_no(self) -> bool:
        return self is Answer.NO

    @property
    def is_unanswered(self) -> bool:
        return self is Answer.UNANSWERED

    @property
    def is_known(self) -> bool:
        """Answered either way."""
        return self is not Answer.UNANSWERED


_RANK = {Answer.NO: 0, Answer.UNANSWERED: 1, Answer.YES: 2}
_OPPOSITE = {Answer.YES: Answer.NO, Answer.NO: Answer.YES, Answer.UNANSWERED: Answer.UNANSWERED}


__all__ = ["Answer"]
