from recruitcrm.models.user import User, ROLES
from recruitcrm.models.candidate import Candidate
from recruitcrm.models.company import Company
from recruitcrm.models.notification import Notification

__all__ = ["User", "ROLES", "Candidate", "Company", "Notification"]
