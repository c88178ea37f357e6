"""
SQLite schema for the snapshot repository.

Timestamps are ISO-8601 UTC text. Free-form bags (metadata, tags, channel
lists) are JSON text and are decoded by the store, never by builders.
"""

import sqlite3

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS workspaces (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT,
    type TEXT NOT NULL DEFAULT 'agency',
    timezone TEXT DEFAULT 'UTC',
    default_currency TEXT DEFAULT 'USD',
    intake_email TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS workspace_members (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL REFERENCES workspaces(id),
    user_id INTEGER,
    name TEXT,
    email TEXT,
    role TEXT,
    status TEXT NOT NULL DEFAULT 'active'
);

CREATE TABLE IF NOT EXISTS candidates (
    id INTEGER PRIMARY KEY,
    first_name TEXT,
    last_name TEXT,
    email TEXT,
    headline TEXT,
    location TEXT,
    availability_status TEXT,
    timezone TEXT
);

CREATE TABLE IF NOT EXISTS applications (
    id INTEGER PRIMARY KEY,
    applicant_id INTEGER NOT NULL,
    target_type TEXT,
    target_id INTEGER,
    status TEXT NOT NULL DEFAULT 'submitted',
    submitted_at TEXT,
    decision_at TEXT,
    updated_at TEXT,
    rate_expectation REAL,
    currency_code TEXT,
    metadata TEXT
);

CREATE TABLE IF NOT EXISTS application_reviews (
    id INTEGER PRIMARY KEY,
    application_id INTEGER NOT NULL REFERENCES applications(id),
    reviewer_name TEXT,
    stage TEXT,
    decision TEXT,
    decided_at TEXT
);

CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    status TEXT,
    client_name TEXT,
    budget_amount REAL,
    budget_currency TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS message_threads (
    id INTEGER PRIMARY KEY,
    subject TEXT,
    state TEXT,
    last_message_at TEXT,
    created_at TEXT,
    metadata TEXT
);

CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY,
    thread_id INTEGER NOT NULL REFERENCES message_threads(id),
    sender_id INTEGER,
    body TEXT,
    created_at TEXT,
    metadata TEXT
);

CREATE TABLE IF NOT EXISTS contact_notes (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    subject_name TEXT,
    author_name TEXT,
    note TEXT,
    visibility TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS pipeline_stages (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    stage_type TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    win_probability REAL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS pipeline_items (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    stage_id INTEGER NOT NULL REFERENCES pipeline_stages(id),
    candidate_id INTEGER,
    score REAL,
    status TEXT NOT NULL DEFAULT 'active',
    stage_entered_at TEXT,
    next_step TEXT,
    estimated_value REAL,
    currency TEXT,
    updated_at TEXT,
    metadata TEXT
);

CREATE TABLE IF NOT EXISTS pipeline_notes (
    id INTEGER PRIMARY KEY,
    item_id INTEGER NOT NULL REFERENCES pipeline_items(id),
    author_name TEXT,
    visibility TEXT,
    body TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS pipeline_attachments (
    id INTEGER PRIMARY KEY,
    item_id INTEGER NOT NULL REFERENCES pipeline_items(id),
    file_name TEXT,
    uploaded_at TEXT
);

CREATE TABLE IF NOT EXISTS pipeline_interviews (
    id INTEGER PRIMARY KEY,
    item_id INTEGER NOT NULL REFERENCES pipeline_items(id),
    interview_type TEXT,
    status TEXT NOT NULL DEFAULT 'scheduled',
    scheduled_at TEXT,
    duration_minutes INTEGER,
    timezone TEXT,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS pipeline_pass_on_shares (
    id INTEGER PRIMARY KEY,
    item_id INTEGER NOT NULL REFERENCES pipeline_items(id),
    target_name TEXT,
    target_type TEXT,
    status TEXT NOT NULL DEFAULT 'draft',
    consent_status TEXT,
    revenue_share_rate REAL,
    revenue_share_amount REAL,
    shared_at TEXT
);

CREATE TABLE IF NOT EXISTS availability_windows (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    day_of_week INTEGER,
    start_time TEXT,
    end_time TEXT,
    availability_type TEXT NOT NULL DEFAULT 'availability',
    broadcast_channels TEXT,
    metadata TEXT
);

CREATE TABLE IF NOT EXISTS wellbeing_logs (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    member_id INTEGER,
    energy_score REAL,
    stress_score REAL,
    wellbeing_score REAL,
    logged_at TEXT,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS knowledge_articles (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    summary TEXT,
    tags TEXT,
    updated_at TEXT,
    usage_count INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS client_engagements (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    client_name TEXT NOT NULL,
    client_contact_name TEXT,
    client_contact_email TEXT,
    contract_status TEXT NOT NULL DEFAULT 'draft',
    contract_value REAL,
    retainer_amount REAL,
    retainer_billing_cycle TEXT,
    success_fee_percentage REAL,
    currency TEXT,
    start_date TEXT,
    renewal_date TEXT,
    updated_at TEXT,
    metadata TEXT
);

CREATE TABLE IF NOT EXISTS engagement_mandates (
    id INTEGER PRIMARY KEY,
    engagement_id INTEGER NOT NULL REFERENCES client_engagements(id),
    title TEXT NOT NULL,
    status TEXT,
    openings INTEGER,
    filled_count INTEGER,
    pipeline_value REAL,
    diversity_score REAL,
    quality_score REAL,
    submissions INTEGER,
    interviews INTEGER,
    offers INTEGER,
    placements INTEGER
);

CREATE TABLE IF NOT EXISTS engagement_milestones (
    id INTEGER PRIMARY KEY,
    engagement_id INTEGER NOT NULL REFERENCES client_engagements(id),
    title TEXT NOT NULL,
    kind TEXT,
    status TEXT NOT NULL DEFAULT 'planned',
    due_at TEXT,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS engagement_portals (
    id INTEGER PRIMARY KEY,
    engagement_id INTEGER NOT NULL REFERENCES client_engagements(id),
    status TEXT NOT NULL DEFAULT 'draft',
    invite_count INTEGER,
    active_users INTEGER
);

CREATE TABLE IF NOT EXISTS engagement_portal_audit_logs (
    id INTEGER PRIMARY KEY,
    portal_id INTEGER NOT NULL REFERENCES engagement_portals(id),
    action TEXT,
    actor_name TEXT,
    occurred_at TEXT
);

CREATE TABLE IF NOT EXISTS engagement_invoices (
    id INTEGER PRIMARY KEY,
    engagement_id INTEGER NOT NULL REFERENCES client_engagements(id),
    invoice_number TEXT,
    amount REAL,
    currency TEXT,
    status TEXT NOT NULL DEFAULT 'draft',
    issued_at TEXT,
    due_at TEXT,
    paid_at TEXT
);

CREATE TABLE IF NOT EXISTS engagement_commission_splits (
    id INTEGER PRIMARY KEY,
    engagement_id INTEGER NOT NULL REFERENCES client_engagements(id),
    partner_name TEXT,
    share_percentage REAL,
    amount REAL,
    status TEXT NOT NULL DEFAULT 'pending',
    paid_at TEXT
);

CREATE TABLE IF NOT EXISTS engagement_schedule_events (
    id INTEGER PRIMARY KEY,
    engagement_id INTEGER NOT NULL REFERENCES client_engagements(id),
    title TEXT NOT NULL,
    scope TEXT,
    event_type TEXT,
    starts_at TEXT,
    ends_at TEXT,
    visibility TEXT,
    host_name TEXT
);

CREATE TABLE IF NOT EXISTS issue_resolution_cases (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    engagement_id INTEGER,
    title TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'open',
    severity TEXT,
    priority TEXT,
    opened_at TEXT,
    resolved_at TEXT,
    playbook TEXT
);

CREATE TABLE IF NOT EXISTS issue_resolution_events (
    id INTEGER PRIMARY KEY,
    case_id INTEGER NOT NULL REFERENCES issue_resolution_cases(id),
    event_type TEXT,
    actor_name TEXT,
    notes TEXT,
    occurred_at TEXT
);

CREATE TABLE IF NOT EXISTS prospect_profiles (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    candidate_id INTEGER,
    headline TEXT,
    relocation_status TEXT,
    compensation_target REAL,
    compensation_currency TEXT,
    exclusivity_conflict INTEGER DEFAULT 0,
    motivators TEXT,
    aggregated_at TEXT
);

CREATE TABLE IF NOT EXISTS prospect_signals (
    id INTEGER PRIMARY KEY,
    profile_id INTEGER NOT NULL REFERENCES prospect_profiles(id),
    signal_type TEXT,
    title TEXT,
    intent_level TEXT,
    source TEXT,
    occurred_at TEXT
);

CREATE TABLE IF NOT EXISTS prospect_search_definitions (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    filters TEXT,
    results_count INTEGER,
    last_run_at TEXT
);

CREATE TABLE IF NOT EXISTS prospect_search_alerts (
    id INTEGER PRIMARY KEY,
    search_id INTEGER NOT NULL REFERENCES prospect_search_definitions(id),
    channel TEXT,
    cadence TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    last_triggered_at TEXT
);

CREATE TABLE IF NOT EXISTS prospect_campaigns (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'draft',
    target_persona TEXT,
    response_rate REAL,
    conversion_rate REAL,
    launched_at TEXT
);

CREATE TABLE IF NOT EXISTS prospect_campaign_steps (
    id INTEGER PRIMARY KEY,
    campaign_id INTEGER NOT NULL REFERENCES prospect_campaigns(id),
    step_order INTEGER NOT NULL DEFAULT 1,
    channel TEXT,
    sends INTEGER,
    replies INTEGER,
    conversions INTEGER
);

CREATE TABLE IF NOT EXISTS prospect_research_notes (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    profile_id INTEGER,
    author_name TEXT,
    title TEXT NOT NULL,
    visibility TEXT DEFAULT 'workspace',
    retention_review_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS prospect_research_tasks (
    id INTEGER PRIMARY KEY,
    workspace_id INTEGER NOT NULL,
    profile_id INTEGER,
    title TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'open',
    priority TEXT,
    due_at TEXT,
    assignee_name TEXT,
    completed_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_pipeline_stages_workspace ON pipeline_stages(workspace_id, position);
CREATE INDEX IF NOT EXISTS idx_pipeline_items_workspace ON pipeline_items(workspace_id);
CREATE INDEX IF NOT EXISTS idx_messages_thread ON messages(thread_id, created_at);
CREATE INDEX IF NOT EXISTS idx_applications_updated ON applications(updated_at);
CREATE INDEX IF NOT EXISTS idx_wellbeing_logs_workspace ON wellbeing_logs(workspace_id, logged_at);
"""


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes (idempotent)."""
    conn.executescript(SCHEMA_SQL)
    conn.commit()
