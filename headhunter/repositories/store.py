"""
SnapshotRepository - SQLite-backed read accessors for the dashboard snapshot.

One connection per query so the orchestrator can fan reads out across a
thread pool. Rows are converted into frozen DTOs here; JSON columns and
metadata soft tags are decoded once and never re-derived downstream.

Database errors are not caught: a failing read fails the snapshot build.
"""

import json
import logging
import sqlite3
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from pathlib import Path

from headhunter import paths
from headhunter.numbers import parse_datetime, parse_int, parse_number
from headhunter.observability.metrics import repository_queries, stages_seeded

from .models import (
    Application,
    ApplicationReview,
    AvailabilityWindow,
    Candidate,
    ClientEngagement,
    CommissionSplit,
    ContactNote,
    EngagementInvoice,
    EngagementMandate,
    EngagementMilestone,
    EngagementPortal,
    IssueResolutionCase,
    IssueResolutionEvent,
    ItemInsights,
    KnowledgeArticle,
    Message,
    MessageThread,
    PassOnShare,
    PassOnTerms,
    PipelineAttachment,
    PipelineInterview,
    PipelineItem,
    PipelineNote,
    PipelineStage,
    PortalAuditLog,
    Project,
    ProspectCampaign,
    ProspectCampaignStep,
    ProspectProfile,
    ProspectSearch,
    ProspectSearchAlert,
    ProspectSignal,
    ResearchNote,
    ResearchTask,
    ScheduleEvent,
    StageTemplate,
    WellbeingLog,
    Workspace,
    WorkspaceMember,
)
from .schema import apply_schema
from .scope import parse_scope_tag

logger = logging.getLogger(__name__)

SELECTABLE_WORKSPACE_TYPES = ("agency", "recruiter")
DEFAULT_CHANNEL = "in-app"

# SQLite's default SQLITE_MAX_VARIABLE_NUMBER is 999 on older builds
IN_CHUNK_SIZE = 500


def _load_json(raw, default):
    """Decode a JSON text column; malformed or mistyped content yields default."""
    if raw is None or raw == "":
        return default
    if isinstance(raw, (dict, list)):
        value = raw
    else:
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Skipping malformed JSON column: %r", str(raw)[:80])
            return default
    return value if isinstance(value, type(default)) else default


def _string_tuple(value) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if v is not None and str(v).strip())
    return ()


def _text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _on_or_after(value: datetime | None, since: datetime | None) -> bool:
    if since is None:
        return True
    return value is not None and value >= since


def _pass_on_terms(metadata: dict) -> PassOnTerms:
    nested = metadata.get("passOn")
    nested = nested if isinstance(nested, dict) else {}

    def pick(nested_key: str, flat_key: str):
        value = nested.get(nested_key)
        return value if value not in (None, "") else metadata.get(flat_key)

    return PassOnTerms(
        target=_text(pick("target", "passOnTarget")),
        next_step=_text(pick("nextStep", "passOnNextStep")),
        shared_at=parse_datetime(pick("sharedAt", "passOnSharedAt")),
        revenue_share=parse_number(pick("revenueShare", "revenueShare")),
    )


def _item_insights(metadata: dict) -> ItemInsights:
    nested = metadata.get("insights")
    source = nested if isinstance(nested, dict) else metadata
    readiness = parse_number(source.get("readiness", source.get("readinessScore")))
    wellbeing = source.get("wellbeing")
    if wellbeing is not None and not isinstance(wellbeing, str):
        number = parse_number(wellbeing)
        wellbeing = None if number is None else f"{number:g}"
    return ItemInsights(
        sentiment=_text(source.get("sentiment")),
        risk=_text(source.get("risk", source.get("riskLevel"))),
        readiness=readiness,
        wellbeing=_text(wellbeing),
        blockers=_string_tuple(source.get("blockers")),
    )


class SnapshotRepository:
    """Typed read accessors over the headhunter SQLite database."""

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = Path(db_path) if db_path else paths.db_path()

    # ==================================================================
    # Connection helpers
    # ==================================================================

    def _get_conn(self, isolation_level: str | None = "") -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30, isolation_level=isolation_level)
        conn.row_factory = sqlite3.Row
        return conn

    def _query_all(self, sql: str, params: Sequence = ()) -> list[dict]:
        repository_queries.inc()
        conn = self._get_conn()
        try:
            return [dict(row) for row in conn.execute(sql, tuple(params)).fetchall()]
        finally:
            conn.close()

    def _query_one(self, sql: str, params: Sequence = ()) -> dict | None:
        rows = self._query_all(sql, params)
        return rows[0] if rows else None

    def _query_in(self, sql: str, ids: Iterable, params: Sequence = ()) -> list[dict]:
        """
        Run sql once per chunk of ids.

        sql must contain a single ``{placeholders}`` marker for the IN list;
        params are appended after the ids.
        """
        unique = list(dict.fromkeys(i for i in ids if i is not None))
        rows: list[dict] = []
        for start in range(0, len(unique), IN_CHUNK_SIZE):
            chunk = unique[start : start + IN_CHUNK_SIZE]
            placeholders = ",".join("?" * len(chunk))
            rows.extend(self._query_all(sql.format(placeholders=placeholders), [*chunk, *params]))
        return rows

    def initialize(self) -> None:
        """Create the schema if it does not exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._get_conn()
        try:
            apply_schema(conn)
        finally:
            conn.close()
        logger.info("Initialized headhunter database at %s", self.db_path)

    # ==================================================================
    # Workspaces
    # ==================================================================

    @staticmethod
    def _workspace(row: dict) -> Workspace:
        return Workspace(
            id=row["id"],
            name=row["name"],
            slug=_text(row["slug"]),
            type=row["type"] or "agency",
            timezone=_text(row["timezone"]),
            default_currency=row["default_currency"] or "USD",
            intake_email=_text(row["intake_email"]),
            is_active=bool(row["is_active"]),
            updated_at=parse_datetime(row["updated_at"]),
        )

    def get_workspace(self, workspace_id: int) -> Workspace | None:
        row = self._query_one("SELECT * FROM workspaces WHERE id = ?", (workspace_id,))
        return self._workspace(row) if row else None

    def find_default_workspace(self) -> Workspace | None:
        """Most recently updated active workspace of a selectable type."""
        row = self._query_one(
            """
            SELECT * FROM workspaces
            WHERE is_active = 1 AND type IN (?, ?)
            ORDER BY COALESCE(updated_at, created_at, '') DESC, id DESC
            LIMIT 1
            """,
            SELECTABLE_WORKSPACE_TYPES,
        )
        return self._workspace(row) if row else None

    def list_selectable_workspaces(self) -> list[Workspace]:
        rows = self._query_all(
            "SELECT * FROM workspaces WHERE is_active = 1 AND type IN (?, ?) ORDER BY name, id",
            SELECTABLE_WORKSPACE_TYPES,
        )
        return [self._workspace(r) for r in rows]

    def list_members(self, workspace_id: int) -> list[WorkspaceMember]:
        rows = self._query_all(
            "SELECT * FROM workspace_members WHERE workspace_id = ? ORDER BY id", (workspace_id,)
        )
        return [
            WorkspaceMember(
                id=r["id"],
                workspace_id=r["workspace_id"],
                user_id=r["user_id"],
                name=_text(r["name"]),
                email=_text(r["email"]),
                role=_text(r["role"]),
                status=(r["status"] or "active").lower(),
            )
            for r in rows
        ]

    # ==================================================================
    # Applications, reviews, projects, candidates
    # ==================================================================

    def list_applications(self, limit: int = 500) -> list[Application]:
        rows = self._query_all(
            """
            SELECT * FROM applications
            ORDER BY COALESCE(updated_at, submitted_at, '') DESC, id DESC
            LIMIT ?
            """,
            (limit,),
        )
        applications = []
        for r in rows:
            metadata = _load_json(r["metadata"], {})
            applications.append(
                Application(
                    id=r["id"],
                    applicant_id=r["applicant_id"],
                    target_type=_text(r["target_type"]),
                    target_id=r["target_id"],
                    status=(r["status"] or "submitted").lower(),
                    submitted_at=parse_datetime(r["submitted_at"]),
                    decision_at=parse_datetime(r["decision_at"]),
                    updated_at=parse_datetime(r["updated_at"]),
                    rate_expectation=parse_number(r["rate_expectation"]),
                    currency=_text(r["currency_code"]),
                    scope=parse_scope_tag(metadata),
                    pass_on=_pass_on_terms(metadata),
                    notes=_string_tuple(metadata.get("notes")),
                    last_touchpoint_at=parse_datetime(metadata.get("lastTouchpointAt")),
                )
            )
        return applications

    def list_reviews(self, application_ids: Iterable[int]) -> list[ApplicationReview]:
        rows = self._query_in(
            "SELECT * FROM application_reviews WHERE application_id IN ({placeholders}) ORDER BY id",
            application_ids,
        )
        return [
            ApplicationReview(
                id=r["id"],
                application_id=r["application_id"],
                stage=_text(r["stage"]),
                decision=_text(r["decision"]),
                decided_at=parse_datetime(r["decided_at"]),
                reviewer_name=_text(r["reviewer_name"]),
            )
            for r in rows
        ]

    def list_projects(self, project_ids: Iterable[int]) -> list[Project]:
        rows = self._query_in("SELECT * FROM projects WHERE id IN ({placeholders})", project_ids)
        return [
            Project(
                id=r["id"],
                title=r["title"],
                status=_text(r["status"]),
                client_name=_text(r["client_name"]),
                budget_amount=parse_number(r["budget_amount"]),
                currency=_text(r["budget_currency"]),
                updated_at=parse_datetime(r["updated_at"]),
            )
            for r in rows
        ]

    @staticmethod
    def _candidate(row: dict) -> Candidate:
        return Candidate(
            id=row["id"],
            first_name=_text(row["first_name"]),
            last_name=_text(row["last_name"]),
            email=_text(row["email"]),
            headline=_text(row["headline"]),
            location=_text(row["location"]),
            availability_status=_text(row["availability_status"]),
            timezone=_text(row["timezone"]),
        )

    def list_candidates(self, candidate_ids: Iterable[int]) -> list[Candidate]:
        rows = self._query_in("SELECT * FROM candidates WHERE id IN ({placeholders})", candidate_ids)
        return [self._candidate(r) for r in rows]

    def _candidates_by_id(self, candidate_ids: Iterable[int]) -> dict[int, Candidate]:
        return {c.id: c for c in self.list_candidates(candidate_ids)}

    # ==================================================================
    # Messaging and notes
    # ==================================================================

    def list_message_threads(self, since: datetime | None = None) -> list[MessageThread]:
        """Threads with at least one message since the cutoff, messages attached."""
        # created_at is free-form ISO text (offsets, space separators), so the
        # cutoff is applied to parsed values rather than in SQL
        message_rows = self._query_all("SELECT * FROM messages ORDER BY created_at, id")

        by_thread: dict[int, list[Message]] = defaultdict(list)
        for r in message_rows:
            created_at = parse_datetime(r["created_at"])
            if not _on_or_after(created_at, since):
                continue
            metadata = _load_json(r["metadata"], {})
            direction = _text(metadata.get("direction"))
            by_thread[r["thread_id"]].append(
                Message(
                    id=r["id"],
                    thread_id=r["thread_id"],
                    sender_id=r["sender_id"],
                    body=r["body"],
                    created_at=created_at,
                    direction=direction.lower() if direction else None,
                    channel=(_text(metadata.get("channel")) or DEFAULT_CHANNEL).lower(),
                )
            )

        if not by_thread:
            return []

        thread_rows = self._query_in(
            "SELECT * FROM message_threads WHERE id IN ({placeholders}) ORDER BY id", by_thread
        )
        return [
            MessageThread(
                id=r["id"],
                subject=_text(r["subject"]),
                state=_text(r["state"]),
                last_message_at=parse_datetime(r["last_message_at"]),
                created_at=parse_datetime(r["created_at"]),
                scope=parse_scope_tag(_load_json(r["metadata"], {})),
                messages=tuple(by_thread[r["id"]]),
            )
            for r in thread_rows
        ]

    def list_contact_notes(self, workspace_id: int, limit: int = 20) -> list[ContactNote]:
        rows = self._query_all(
            """
            SELECT * FROM contact_notes WHERE workspace_id = ?
            ORDER BY created_at DESC, id DESC LIMIT ?
            """,
            (workspace_id, limit),
        )
        return [
            ContactNote(
                id=r["id"],
                workspace_id=r["workspace_id"],
                subject_name=_text(r["subject_name"]),
                author_name=_text(r["author_name"]),
                note=r["note"],
                visibility=_text(r["visibility"]),
                created_at=parse_datetime(r["created_at"]),
            )
            for r in rows
        ]

    # ==================================================================
    # Pipeline stages and items
    # ==================================================================

    def count_pipeline_stages(self, workspace_id: int) -> int:
        row = self._query_one(
            "SELECT COUNT(*) AS n FROM pipeline_stages WHERE workspace_id = ?", (workspace_id,)
        )
        return row["n"] if row else 0

    def seed_default_stages(self, workspace_id: int, stages: Sequence[StageTemplate]) -> int:
        """
        Insert the default stage set if the workspace has no stages.

        Takes the SQLite write lock with BEGIN IMMEDIATE and re-counts under
        it, so concurrent first callers (threads or processes) insert once.
        Returns the number of rows inserted.
        """
        repository_queries.inc()
        conn = self._get_conn(isolation_level=None)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                existing = conn.execute(
                    "SELECT COUNT(*) FROM pipeline_stages WHERE workspace_id = ?",
                    (workspace_id,),
                ).fetchone()[0]
                if existing:
                    conn.execute("COMMIT")
                    return 0
                created_at = datetime.now(timezone.utc).isoformat()
                conn.executemany(
                    """
                    INSERT INTO pipeline_stages
                        (workspace_id, name, stage_type, position, win_probability, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (workspace_id, s.name, s.stage_type, position, s.win_probability, created_at)
                        for position, s in enumerate(stages)
                    ],
                )
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()

        stages_seeded.inc(len(stages))
        return len(stages)

    def list_pipeline_stages(self, workspace_id: int) -> list[PipelineStage]:
        rows = self._query_all(
            "SELECT * FROM pipeline_stages WHERE workspace_id = ? ORDER BY position, id",
            (workspace_id,),
        )
        return [
            PipelineStage(
                id=r["id"],
                workspace_id=r["workspace_id"],
                name=r["name"],
                stage_type=_text(r["stage_type"]),
                position=r["position"] or 0,
                win_probability=parse_number(r["win_probability"]),
            )
            for r in rows
        ]

    def list_pipeline_items(self, workspace_id: int) -> list[PipelineItem]:
        """Items with candidate, notes, attachments, interviews and pass-on shares."""
        rows = self._query_all(
            "SELECT * FROM pipeline_items WHERE workspace_id = ? ORDER BY id", (workspace_id,)
        )
        if not rows:
            return []
        item_ids = [r["id"] for r in rows]

        notes: dict[int, list[PipelineNote]] = defaultdict(list)
        for n in self._query_in(
            "SELECT * FROM pipeline_notes WHERE item_id IN ({placeholders}) ORDER BY created_at, id",
            item_ids,
        ):
            notes[n["item_id"]].append(
                PipelineNote(
                    id=n["id"],
                    item_id=n["item_id"],
                    author_name=_text(n["author_name"]),
                    visibility=_text(n["visibility"]),
                    body=n["body"],
                    created_at=parse_datetime(n["created_at"]),
                )
            )

        attachments: dict[int, list[PipelineAttachment]] = defaultdict(list)
        for a in self._query_in(
            "SELECT * FROM pipeline_attachments WHERE item_id IN ({placeholders}) ORDER BY id",
            item_ids,
        ):
            attachments[a["item_id"]].append(
                PipelineAttachment(
                    id=a["id"],
                    item_id=a["item_id"],
                    file_name=_text(a["file_name"]),
                    uploaded_at=parse_datetime(a["uploaded_at"]),
                )
            )

        interviews: dict[int, list[PipelineInterview]] = defaultdict(list)
        for i in self._query_in(
            "SELECT * FROM pipeline_interviews WHERE item_id IN ({placeholders}) ORDER BY scheduled_at, id",
            item_ids,
        ):
            interviews[i["item_id"]].append(
                PipelineInterview(
                    id=i["id"],
                    item_id=i["item_id"],
                    interview_type=_text(i["interview_type"]),
                    status=(i["status"] or "scheduled").lower(),
                    scheduled_at=parse_datetime(i["scheduled_at"]),
                    duration_minutes=parse_int(i["duration_minutes"]),
                    timezone=_text(i["timezone"]),
                    completed_at=parse_datetime(i["completed_at"]),
                )
            )

        shares: dict[int, list[PassOnShare]] = defaultdict(list)
        for s in self._query_in(
            "SELECT * FROM pipeline_pass_on_shares WHERE item_id IN ({placeholders}) ORDER BY id",
            item_ids,
        ):
            shares[s["item_id"]].append(
                PassOnShare(
                    id=s["id"],
                    item_id=s["item_id"],
                    target_name=_text(s["target_name"]),
                    target_type=_text(s["target_type"]),
                    status=(s["status"] or "draft").lower(),
                    consent_status=_text(s["consent_status"]),
                    revenue_share_rate=parse_number(s["revenue_share_rate"]),
                    revenue_share_amount=parse_number(s["revenue_share_amount"]),
                    shared_at=parse_datetime(s["shared_at"]),
                )
            )

        candidates = self._candidates_by_id(r["candidate_id"] for r in rows)

        return [
            PipelineItem(
                id=r["id"],
                workspace_id=r["workspace_id"],
                stage_id=r["stage_id"],
                candidate=candidates.get(r["candidate_id"]),
                score=parse_number(r["score"]),
                status=(r["status"] or "active").lower(),
                stage_entered_at=parse_datetime(r["stage_entered_at"]),
                next_step=_text(r["next_step"]),
                estimated_value=parse_number(r["estimated_value"]),
                currency=_text(r["currency"]),
                updated_at=parse_datetime(r["updated_at"]),
                insights=_item_insights(_load_json(r["metadata"], {})),
                notes=tuple(notes[r["id"]]),
                attachments=tuple(attachments[r["id"]]),
                interviews=tuple(interviews[r["id"]]),
                pass_on_shares=tuple(shares[r["id"]]),
            )
            for r in rows
        ]

    # ==================================================================
    # Calendar, wellbeing, knowledge
    # ==================================================================

    def list_availability_windows(self, workspace_id: int) -> list[AvailabilityWindow]:
        rows = self._query_all(
            """
            SELECT * FROM availability_windows WHERE workspace_id = ?
            ORDER BY day_of_week, start_time, id
            """,
            (workspace_id,),
        )
        windows = []
        for r in rows:
            metadata = _load_json(r["metadata"], {})
            windows.append(
                AvailabilityWindow(
                    id=r["id"],
                    workspace_id=r["workspace_id"],
                    day_of_week=parse_int(r["day_of_week"]),
                    start_time=_text(r["start_time"]),
                    end_time=_text(r["end_time"]),
                    availability_type=(r["availability_type"] or "availability").lower(),
                    broadcast_channels=_string_tuple(_load_json(r["broadcast_channels"], [])),
                    recipients=_string_tuple(metadata.get("recipients")),
                )
            )
        return windows

    def list_wellbeing_logs(
        self, workspace_id: int, since: datetime | None = None
    ) -> list[WellbeingLog]:
        rows = self._query_all(
            "SELECT * FROM wellbeing_logs WHERE workspace_id = ? ORDER BY logged_at, id",
            (workspace_id,),
        )

        logs = []
        for r in rows:
            logged_at = parse_datetime(r["logged_at"])
            if not _on_or_after(logged_at, since):
                continue
            logs.append(
                WellbeingLog(
                    id=r["id"],
                    workspace_id=r["workspace_id"],
                    member_id=r["member_id"],
                    energy_score=parse_number(r["energy_score"]),
                    stress_score=parse_number(r["stress_score"]),
                    wellbeing_score=parse_number(r["wellbeing_score"]),
                    logged_at=logged_at,
                    notes=r["notes"],
                )
            )
        return logs

    def list_knowledge_articles(self, workspace_id: int) -> list[KnowledgeArticle]:
        rows = self._query_all(
            "SELECT * FROM knowledge_articles WHERE workspace_id = ? ORDER BY updated_at DESC, id",
            (workspace_id,),
        )
        return [
            KnowledgeArticle(
                id=r["id"],
                workspace_id=r["workspace_id"],
                title=r["title"],
                summary=r["summary"],
                tags=_string_tuple(_load_json(r["tags"], [])),
                updated_at=parse_datetime(r["updated_at"]),
                usage_count=parse_int(r["usage_count"]) or 0,
            )
            for r in rows
        ]

    # ==================================================================
    # Client engagements and issue resolution
    # ==================================================================

    def _children(self, table: str, key: str, ids: list[int], order: str = "id") -> dict:
        grouped: dict[int, list[dict]] = defaultdict(list)
        for row in self._query_in(
            f"SELECT * FROM {table} WHERE {key} IN ({{placeholders}}) ORDER BY {order}", ids
        ):
            grouped[row[key]].append(row)
        return grouped

    def list_client_engagements(self, workspace_id: int) -> list[ClientEngagement]:
        rows = self._query_all(
            "SELECT * FROM client_engagements WHERE workspace_id = ? ORDER BY id", (workspace_id,)
        )
        if not rows:
            return []
        ids = [r["id"] for r in rows]

        mandates = self._children("engagement_mandates", "engagement_id", ids)
        milestones = self._children("engagement_milestones", "engagement_id", ids, "due_at, id")
        portals = self._children("engagement_portals", "engagement_id", ids)
        invoices = self._children("engagement_invoices", "engagement_id", ids, "due_at, id")
        splits = self._children("engagement_commission_splits", "engagement_id", ids)
        events = self._children("engagement_schedule_events", "engagement_id", ids, "starts_at, id")
        portal_ids = [p["id"] for group in portals.values() for p in group]
        audit_logs = (
            self._children("engagement_portal_audit_logs", "portal_id", portal_ids, "occurred_at, id")
            if portal_ids
            else {}
        )

        engagements = []
        for r in rows:
            metadata = _load_json(r["metadata"], {})
            performance = metadata.get("performance")
            engagements.append(
                ClientEngagement(
                    id=r["id"],
                    workspace_id=r["workspace_id"],
                    client_name=r["client_name"],
                    contact_name=_text(r["client_contact_name"]),
                    contact_email=_text(r["client_contact_email"]),
                    contract_status=(r["contract_status"] or "draft").lower(),
                    contract_value=parse_number(r["contract_value"]),
                    retainer_amount=parse_number(r["retainer_amount"]),
                    billing_cycle=_text(r["retainer_billing_cycle"]),
                    success_fee_percentage=parse_number(r["success_fee_percentage"]),
                    currency=_text(r["currency"]),
                    start_date=parse_datetime(r["start_date"]),
                    renewal_date=parse_datetime(r["renewal_date"]),
                    updated_at=parse_datetime(r["updated_at"]),
                    performance=dict(performance) if isinstance(performance, dict) else {},
                    mandates=tuple(
                        EngagementMandate(
                            id=m["id"],
                            engagement_id=m["engagement_id"],
                            title=m["title"],
                            status=_text(m["status"]),
                            openings=parse_int(m["openings"]),
                            filled_count=parse_int(m["filled_count"]),
                            pipeline_value=parse_number(m["pipeline_value"]),
                            diversity_score=parse_number(m["diversity_score"]),
                            quality_score=parse_number(m["quality_score"]),
                            submissions=parse_int(m["submissions"]),
                            interviews=parse_int(m["interviews"]),
                            offers=parse_int(m["offers"]),
                            placements=parse_int(m["placements"]),
                        )
                        for m in mandates[r["id"]]
                    ),
                    milestones=tuple(
                        EngagementMilestone(
                            id=m["id"],
                            engagement_id=m["engagement_id"],
                            title=m["title"],
                            kind=_text(m["kind"]),
                            status=(m["status"] or "planned").lower(),
                            due_at=parse_datetime(m["due_at"]),
                            completed_at=parse_datetime(m["completed_at"]),
                        )
                        for m in milestones[r["id"]]
                    ),
                    portals=tuple(
                        EngagementPortal(
                            id=p["id"],
                            engagement_id=p["engagement_id"],
                            status=(p["status"] or "draft").lower(),
                            invite_count=parse_int(p["invite_count"]),
                            active_users=parse_int(p["active_users"]),
                            audit_logs=tuple(
                                PortalAuditLog(
                                    id=a["id"],
                                    portal_id=a["portal_id"],
                                    action=_text(a["action"]),
                                    actor_name=_text(a["actor_name"]),
                                    occurred_at=parse_datetime(a["occurred_at"]),
                                )
                                for a in audit_logs.get(p["id"], [])
                            ),
                        )
                        for p in portals[r["id"]]
                    ),
                    invoices=tuple(
                        EngagementInvoice(
                            id=i["id"],
                            engagement_id=i["engagement_id"],
                            invoice_number=_text(i["invoice_number"]),
                            amount=parse_number(i["amount"]),
                            currency=_text(i["currency"]),
                            status=(i["status"] or "draft").lower(),
                            issued_at=parse_datetime(i["issued_at"]),
                            due_at=parse_datetime(i["due_at"]),
                            paid_at=parse_datetime(i["paid_at"]),
                        )
                        for i in invoices[r["id"]]
                    ),
                    commission_splits=tuple(
                        CommissionSplit(
                            id=s["id"],
                            engagement_id=s["engagement_id"],
                            partner_name=_text(s["partner_name"]),
                            share_percentage=parse_number(s["share_percentage"]),
                            amount=parse_number(s["amount"]),
                            status=(s["status"] or "pending").lower(),
                            paid_at=parse_datetime(s["paid_at"]),
                        )
                        for s in splits[r["id"]]
                    ),
                    schedule_events=tuple(
                        ScheduleEvent(
                            id=e["id"],
                            engagement_id=e["engagement_id"],
                            title=e["title"],
                            scope=_text(e["scope"]),
                            event_type=(_text(e["event_type"]) or "").lower() or None,
                            starts_at=parse_datetime(e["starts_at"]),
                            ends_at=parse_datetime(e["ends_at"]),
                            visibility=_text(e["visibility"]),
                            host_name=_text(e["host_name"]),
                        )
                        for e in events[r["id"]]
                    ),
                )
            )
        return engagements

    def list_issue_cases(self, workspace_id: int) -> list[IssueResolutionCase]:
        rows = self._query_all(
            "SELECT * FROM issue_resolution_cases WHERE workspace_id = ? ORDER BY opened_at, id",
            (workspace_id,),
        )
        if not rows:
            return []
        events = self._children(
            "issue_resolution_events", "case_id", [r["id"] for r in rows], "occurred_at, id"
        )
        return [
            IssueResolutionCase(
                id=r["id"],
                workspace_id=r["workspace_id"],
                engagement_id=r["engagement_id"],
                title=r["title"],
                status=(r["status"] or "open").lower(),
                severity=_text(r["severity"]),
                priority=_text(r["priority"]),
                opened_at=parse_datetime(r["opened_at"]),
                resolved_at=parse_datetime(r["resolved_at"]),
                playbook=_text(r["playbook"]),
                events=tuple(
                    IssueResolutionEvent(
                        id=e["id"],
                        case_id=e["case_id"],
                        event_type=_text(e["event_type"]),
                        actor_name=_text(e["actor_name"]),
                        notes=e["notes"],
                        occurred_at=parse_datetime(e["occurred_at"]),
                    )
                    for e in events[r["id"]]
                ),
            )
            for r in rows
        ]

    # ==================================================================
    # Prospect intelligence
    # ==================================================================

    def list_prospect_profiles(self, workspace_id: int) -> list[ProspectProfile]:
        rows = self._query_all(
            "SELECT * FROM prospect_profiles WHERE workspace_id = ? ORDER BY aggregated_at DESC, id",
            (workspace_id,),
        )
        if not rows:
            return []
        signals = self._children(
            "prospect_signals", "profile_id", [r["id"] for r in rows], "occurred_at DESC, id"
        )
        candidates = self._candidates_by_id(r["candidate_id"] for r in rows)
        return [
            ProspectProfile(
                id=r["id"],
                workspace_id=r["workspace_id"],
                candidate=candidates.get(r["candidate_id"]),
                headline=_text(r["headline"]),
                relocation_status=_text(r["relocation_status"]),
                compensation_target=parse_number(r["compensation_target"]),
                compensation_currency=_text(r["compensation_currency"]),
                exclusivity_conflict=bool(r["exclusivity_conflict"]),
                motivators=_string_tuple(_load_json(r["motivators"], [])),
                aggregated_at=parse_datetime(r["aggregated_at"]),
                signals=tuple(
                    ProspectSignal(
                        id=s["id"],
                        profile_id=s["profile_id"],
                        signal_type=_text(s["signal_type"]),
                        title=_text(s["title"]),
                        intent_level=(_text(s["intent_level"]) or "").lower() or None,
                        source=_text(s["source"]),
                        occurred_at=parse_datetime(s["occurred_at"]),
                    )
                    for s in signals[r["id"]]
                ),
            )
            for r in rows
        ]

    def list_prospect_searches(self, workspace_id: int) -> list[ProspectSearch]:
        rows = self._query_all(
            "SELECT * FROM prospect_search_definitions WHERE workspace_id = ? ORDER BY id",
            (workspace_id,),
        )
        if not rows:
            return []
        alerts = self._children("prospect_search_alerts", "search_id", [r["id"] for r in rows])
        return [
            ProspectSearch(
                id=r["id"],
                workspace_id=r["workspace_id"],
                name=r["name"],
                industries=_string_tuple(_load_json(r["filters"], {}).get("industries")),
                results_count=parse_int(r["results_count"]),
                last_run_at=parse_datetime(r["last_run_at"]),
                alerts=tuple(
                    ProspectSearchAlert(
                        id=a["id"],
                        search_id=a["search_id"],
                        channel=_text(a["channel"]),
                        cadence=_text(a["cadence"]),
                        status=(a["status"] or "active").lower(),
                        last_triggered_at=parse_datetime(a["last_triggered_at"]),
                    )
                    for a in alerts[r["id"]]
                ),
            )
            for r in rows
        ]

    def list_prospect_campaigns(self, workspace_id: int) -> list[ProspectCampaign]:
        rows = self._query_all(
            "SELECT * FROM prospect_campaigns WHERE workspace_id = ? ORDER BY id", (workspace_id,)
        )
        if not rows:
            return []
        steps = self._children(
            "prospect_campaign_steps", "campaign_id", [r["id"] for r in rows], "step_order, id"
        )
        return [
            ProspectCampaign(
                id=r["id"],
                workspace_id=r["workspace_id"],
                name=r["name"],
                status=(r["status"] or "draft").lower(),
                target_persona=_text(r["target_persona"]),
                response_rate=parse_number(r["response_rate"]),
                conversion_rate=parse_number(r["conversion_rate"]),
                launched_at=parse_datetime(r["launched_at"]),
                steps=tuple(
                    ProspectCampaignStep(
                        id=s["id"],
                        campaign_id=s["campaign_id"],
                        step_order=parse_int(s["step_order"]) or 1,
                        channel=_text(s["channel"]),
                        sends=parse_int(s["sends"]),
                        replies=parse_int(s["replies"]),
                        conversions=parse_int(s["conversions"]),
                    )
                    for s in steps[r["id"]]
                ),
            )
            for r in rows
        ]

    def list_research_notes(self, workspace_id: int) -> list[ResearchNote]:
        rows = self._query_all(
            "SELECT * FROM prospect_research_notes WHERE workspace_id = ? ORDER BY created_at DESC, id",
            (workspace_id,),
        )
        return [
            ResearchNote(
                id=r["id"],
                workspace_id=r["workspace_id"],
                profile_id=r["profile_id"],
                author_name=_text(r["author_name"]),
                title=r["title"],
                visibility=(_text(r["visibility"]) or "workspace").lower(),
                retention_review_at=parse_datetime(r["retention_review_at"]),
                created_at=parse_datetime(r["created_at"]),
            )
            for r in rows
        ]

    def list_research_tasks(self, workspace_id: int) -> list[ResearchTask]:
        rows = self._query_all(
            "SELECT * FROM prospect_research_tasks WHERE workspace_id = ? ORDER BY due_at, id",
            (workspace_id,),
        )
        return [
            ResearchTask(
                id=r["id"],
                workspace_id=r["workspace_id"],
                profile_id=r["profile_id"],
                title=r["title"],
                status=(r["status"] or "open").lower(),
                priority=_text(r["priority"]),
                due_at=parse_datetime(r["due_at"]),
                assignee_name=_text(r["assignee_name"]),
                completed_at=parse_datetime(r["completed_at"]),
            )
            for r in rows
        ]
