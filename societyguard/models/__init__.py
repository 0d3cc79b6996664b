# SocietyGuard database models
# Import all models here for SQLAlchemy discovery

from societyguard.models.event import Event            # noqa
from societyguard.models.society import Society        # noqa
from societyguard.models.camera import Camera          # noqa
from societyguard.models.user import User              # noqa
from societyguard.models.audit_log import AuditLog     # noqa
