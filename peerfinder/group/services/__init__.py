from .ai_groups import AIGroupService
from .group_service import StudyGroupService
from .join_requests import JoinRequestService
from .suggestions import MemberSuggester, MemberSuggestion, SuggestionError

__all__ = [
    "AIGroupService",
    "JoinRequestService",
    "MemberSuggester",
    "MemberSuggestion",
    "StudyGroupService",
    "SuggestionError",
]
