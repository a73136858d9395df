from .membership_draft import MembershipDraft  # noqa: F401
from .membership_finalization import MembershipFinalization  # noqa: F401
