"""
Database Models

Every business model carries tenant_id for multi-tenant isolation.
TenantScopedSession relies on it to filter queries and stamp inserts.
"""
from isoqms.models.tenant import Tenant, TenantStatus
from isoqms.models.subscription import Plan, Subscription, SubscriptionStatus
from isoqms.models.user import User
from isoqms.models.membership import TenantMember, Invitation, OrgRole, InvitationStatus
from isoqms.models.client import ConsultingClient, ClientStatus
from isoqms.models.project import Project, ProjectStatus
from isoqms.models.nonconformity import Nonconformity, RootCause
from isoqms.models.action_plan import ActionPlan
from isoqms.models.risk import Risk, RiskHistory
from isoqms.models.audit import Audit, AuditFinding
from isoqms.models.document import Document, DocumentVersion
from isoqms.models.supplier import Supplier
from isoqms.models.policy import Policy
from isoqms.models.indicator import Indicator, IndicatorMeasurement
from isoqms.models.activity_log import ActivityLog, ActivityAction

__all__ = [
    "Tenant", "TenantStatus", "Plan", "Subscription", "SubscriptionStatus",
    "User", "TenantMember", "Invitation", "OrgRole", "InvitationStatus",
    "ConsultingClient", "ClientStatus",
    "Project", "ProjectStatus", "Nonconformity", "RootCause", "ActionPlan",
    "Risk", "RiskHistory", "Audit", "AuditFinding", "Document",
    "DocumentVersion", "Supplier", "Policy", "Indicator",
    "IndicatorMeasurement", "ActivityLog", "ActivityAction",
]
