from narcisse.domain.audit import AuditTrail, Log
from narcisse.repositories.base import BaseRepository


class LogRepository(BaseRepository[Log]):
    model = Log


class AuditTrailRepository(BaseRepository[AuditTrail]):
    model = AuditTrail
