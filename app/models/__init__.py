from app.models.user import User
from app.models.charity import Charity
from app.models.global_pot import GlobalPot
from app.models.spin import Spin
from app.models.donation import Donation
from app.models.audit_log import AuditLog
from app.models.failed_job import FailedJob

__all__ = [
    "User",
    "Charity",
    "GlobalPot",
    "Spin",
    "Donation",
    "AuditLog",
    "FailedJob",
]
