from .enums import InquiryStatus, ItemCategory
from .inquiry import Inquiry
from .item import LostItem
from .candidate import CandidateMatch
from .match import ConfirmedMatch

__all__ = [
    "InquiryStatus",
    "ItemCategory",
    "Inquiry",
    "LostItem",
    "CandidateMatch",
    "ConfirmedMatch",
]
