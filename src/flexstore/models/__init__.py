from flexstore.db.database import Base

# Import all models so Alembic can discover them
from .tenant import Tenant, TenantPlan
from .user import User
from .database_definition import Database, FieldDefinition, FieldType
from .record import Record
from .activity_log import ActivityLog, ActivityAction
