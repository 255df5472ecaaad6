from gms.models.models import (  # noqa: F401
    TimestampedBase,
    UserRole,
    Gender,
    MembershipStatus,
    Branch,
    User,
    Member,
    TrainingProgress,
    AuditLog,
    SystemSetting,
)
