"""
Read-only DTOs returned by the repository layer.

Every DTO is a frozen dataclass and arrives fully populated (children
attached) so builders never touch a database handle. Metadata bags are
decoded once in the store; the typed fields below carry everything the
builders read.
"""

from dataclasses import dataclass, field
from datetime import datetime

from .scope import ScopeTag


@dataclass(frozen=True)
class Workspace:
    id: int
    name: str
    slug: str | None
    type: str
    timezone: str | None
    default_currency: str
    intake_email: str | None
    is_active: bool
    updated_at: datetime | None


@dataclass(frozen=True)
class WorkspaceMember:
    id: int
    workspace_id: int
    user_id: int | None
    name: str | None
    email: str | None
    role: str | None
    status: str


@dataclass(frozen=True)
class Candidate:
    id: int
    first_name: str | None
    last_name: str | None
    email: str | None
    headline: str | None
    location: str | None
    availability_status: str | None
    timezone: str | None

    @property
    def name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else f"Candidate {self.id}"


@dataclass(frozen=True)
class PassOnTerms:
    target: str | None = None
    next_step: str | None = None
    shared_at: datetime | None = None
    revenue_share: float | None = None


@dataclass(frozen=True)
class Application:
    id: int
    applicant_id: int
    target_type: str | None
    target_id: int | None
    status: str
    submitted_at: datetime | None
    decision_at: datetime | None
    updated_at: datetime | None
    rate_expectation: float | None
    currency: str | None
    scope: ScopeTag = field(default_factory=ScopeTag)
    pass_on: PassOnTerms = field(default_factory=PassOnTerms)
    notes: tuple[str, ...] = ()
    last_touchpoint_at: datetime | None = None


@dataclass(frozen=True)
class ApplicationReview:
    id: int
    application_id: int
    stage: str | None
    decision: str | None
    decided_at: datetime | None
    reviewer_name: str | None


@dataclass(frozen=True)
class Project:
    id: int
    title: str
    status: str | None
    client_name: str | None
    budget_amount: float | None
    currency: str | None
    updated_at: datetime | None


@dataclass(frozen=True)
class Message:
    id: int
    thread_id: int
    sender_id: int | None
    body: str | None
    created_at: datetime | None
    direction: str | None
    channel: str


@dataclass(frozen=True)
class MessageThread:
    id: int
    subject: str | None
    state: str | None
    last_message_at: datetime | None
    created_at: datetime | None
    scope: ScopeTag = field(default_factory=ScopeTag)
    messages: tuple[Message, ...] = ()


@dataclass(frozen=True)
class ContactNote:
    id: int
    workspace_id: int
    subject_name: str | None
    author_name: str | None
    note: str | None
    visibility: str | None
    created_at: datetime | None


@dataclass(frozen=True)
class StageTemplate:
    name: str
    stage_type: str
    win_probability: float


@dataclass(frozen=True)
class PipelineStage:
    id: int
    workspace_id: int
    name: str
    stage_type: str | None
    position: int
    win_probability: float | None


@dataclass(frozen=True)
class PipelineNote:
    id: int
    item_id: int
    author_name: str | None
    visibility: str | None
    body: str | None
    created_at: datetime | None


@dataclass(frozen=True)
class PipelineAttachment:
    id: int
    item_id: int
    file_name: str | None
    uploaded_at: datetime | None


@dataclass(frozen=True)
class PipelineInterview:
    id: int
    item_id: int
    interview_type: str | None
    status: str
    scheduled_at: datetime | None
    duration_minutes: int | None
    timezone: str | None
    completed_at: datetime | None


@dataclass(frozen=True)
class PassOnShare:
    id: int
    item_id: int
    target_name: str | None
    target_type: str | None
    status: str
    consent_status: str | None
    revenue_share_rate: float | None
    revenue_share_amount: float | None
    shared_at: datetime | None


@dataclass(frozen=True)
class ItemInsights:
    sentiment: str | None = None
    risk: str | None = None
    readiness: float | None = None
    wellbeing: str | None = None
    blockers: tuple[str, ...] = ()


@dataclass(frozen=True)
class PipelineItem:
    id: int
    workspace_id: int
    stage_id: int
    candidate: Candidate | None
    score: float | None
    status: str
    stage_entered_at: datetime | None
    next_step: str | None
    estimated_value: float | None
    currency: str | None
    updated_at: datetime | None
    insights: ItemInsights = field(default_factory=ItemInsights)
    notes: tuple[PipelineNote, ...] = ()
    attachments: tuple[PipelineAttachment, ...] = ()
    interviews: tuple[PipelineInterview, ...] = ()
    pass_on_shares: tuple[PassOnShare, ...] = ()

    @property
    def candidate_name(self) -> str:
        return self.candidate.name if self.candidate else f"Item {self.id}"


@dataclass(frozen=True)
class AvailabilityWindow:
    id: int
    workspace_id: int
    day_of_week: int | None
    start_time: str | None
    end_time: str | None
    availability_type: str
    broadcast_channels: tuple[str, ...] = ()
    recipients: tuple[str, ...] = ()


@dataclass(frozen=True)
class WellbeingLog:
    id: int
    workspace_id: int
    member_id: int | None
    energy_score: float | None
    stress_score: float | None
    wellbeing_score: float | None
    logged_at: datetime | None
    notes: str | None


@dataclass(frozen=True)
class KnowledgeArticle:
    id: int
    workspace_id: int
    title: str
    summary: str | None
    tags: tuple[str, ...]
    updated_at: datetime | None
    usage_count: int


@dataclass(frozen=True)
class EngagementMandate:
    id: int
    engagement_id: int
    title: str
    status: str | None
    openings: int | None
    filled_count: int | None
    pipeline_value: float | None
    diversity_score: float | None
    quality_score: float | None
    submissions: int | None
    interviews: int | None
    offers: int | None
    placements: int | None


@dataclass(frozen=True)
class EngagementMilestone:
    id: int
    engagement_id: int
    title: str
    kind: str | None
    status: str
    due_at: datetime | None
    completed_at: datetime | None


@dataclass(frozen=True)
class PortalAuditLog:
    id: int
    portal_id: int
    action: str | None
    actor_name: str | None
    occurred_at: datetime | None


@dataclass(frozen=True)
class EngagementPortal:
    id: int
    engagement_id: int
    status: str
    invite_count: int | None
    active_users: int | None
    audit_logs: tuple[PortalAuditLog, ...] = ()


@dataclass(frozen=True)
class EngagementInvoice:
    id: int
    engagement_id: int
    invoice_number: str | None
    amount: float | None
    currency: str | None
    status: str
    issued_at: datetime | None
    due_at: datetime | None
    paid_at: datetime | None


@dataclass(frozen=True)
class CommissionSplit:
    id: int
    engagement_id: int
    partner_name: str | None
    share_percentage: float | None
    amount: float | None
    status: str
    paid_at: datetime | None


@dataclass(frozen=True)
class ScheduleEvent:
    id: int
    engagement_id: int
    title: str
    scope: str | None
    event_type: str | None
    starts_at: datetime | None
    ends_at: datetime | None
    visibility: str | None
    host_name: str | None


@dataclass(frozen=True)
class ClientEngagement:
    id: int
    workspace_id: int
    client_name: str
    contact_name: str | None
    contact_email: str | None
    contract_status: str
    contract_value: float | None
    retainer_amount: float | None
    billing_cycle: str | None
    success_fee_percentage: float | None
    currency: str | None
    start_date: datetime | None
    renewal_date: datetime | None
    updated_at: datetime | None
    performance: dict = field(default_factory=dict)
    mandates: tuple[EngagementMandate, ...] = ()
    milestones: tuple[EngagementMilestone, ...] = ()
    portals: tuple[EngagementPortal, ...] = ()
    invoices: tuple[EngagementInvoice, ...] = ()
    commission_splits: tuple[CommissionSplit, ...] = ()
    schedule_events: tuple[ScheduleEvent, ...] = ()


@dataclass(frozen=True)
class IssueResolutionEvent:
    id: int
    case_id: int
    event_type: str | None
    actor_name: str | None
    notes: str | None
    occurred_at: datetime | None


@dataclass(frozen=True)
class IssueResolutionCase:
    id: int
    workspace_id: int
    engagement_id: int | None
    title: str
    status: str
    severity: str | None
    priority: str | None
    opened_at: datetime | None
    resolved_at: datetime | None
    playbook: str | None
    events: tuple[IssueResolutionEvent, ...] = ()


@dataclass(frozen=True)
class ProspectSignal:
    id: int
    profile_id: int
    signal_type: str | None
    title: str | None
    intent_level: str | None
    source: str | None
    occurred_at: datetime | None


@dataclass(frozen=True)
class ProspectProfile:
    id: int
    workspace_id: int
    candidate: Candidate | None
    headline: str | None
    relocation_status: str | None
    compensation_target: float | None
    compensation_currency: str | None
    exclusivity_conflict: bool
    motivators: tuple[str, ...]
    aggregated_at: datetime | None
    signals: tuple[ProspectSignal, ...] = ()

    @property
    def display_name(self) -> str:
        return self.candidate.name if self.candidate else f"Prospect {self.id}"


@dataclass(frozen=True)
class ProspectSearchAlert:
    id: int
    search_id: int
    channel: str | None
    cadence: str | None
    status: str
    last_triggered_at: datetime | None


@dataclass(frozen=True)
class ProspectSearch:
    id: int
    workspace_id: int
    name: str
    industries: tuple[str, ...]
    results_count: int | None
    last_run_at: datetime | None
    alerts: tuple[ProspectSearchAlert, ...] = ()


@dataclass(frozen=True)
class ProspectCampaignStep:
    id: int
    campaign_id: int
    step_order: int
    channel: str | None
    sends: int | None
    replies: int | None
    conversions: int | None


@dataclass(frozen=True)
class ProspectCampaign:
    id: int
    workspace_id: int
    name: str
    status: str
    target_persona: str | None
    response_rate: float | None
    conversion_rate: float | None
    launched_at: datetime | None
    steps: tuple[ProspectCampaignStep, ...] = ()


@dataclass(frozen=True)
class ResearchNote:
    id: int
    workspace_id: int
    profile_id: int | None
    author_name: str | None
    title: str
    visibility: str | None
    retention_review_at: datetime | None
    created_at: datetime | None


@dataclass(frozen=True)
class ResearchTask:
    id: int
    workspace_id: int
    profile_id: int | None
    title: str
    status: str
    priority: str | None
    due_at: datetime | None
    assignee_name: str | None
    completed_at: datetime | None
