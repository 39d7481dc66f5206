"""Core constants: upstream table/field names, query fragments and key prefixes.

Single source of truth for literals shared by the services (DRY).
"""

import re

# Canonical upstream record identifier: 32 hex chars
SYS_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$", re.IGNORECASE)

# Rendered in place of empty old/new values and missing names
PLACEHOLDER = "—"

# Upstream tables
TABLE_USER = "sys_user"
TABLE_GROUP = "sys_user_group"
TABLE_GROUP_MEMBER = "sys_user_grmember"
TABLE_JOURNAL = "sys_journal_field"
TABLE_AUDIT = "sys_audit"
TABLE_APPROVAL = "sysapproval_approver"

# Tables tried (in order) for the record an approval points at
APPROVAL_TARGET_TABLES = (
    "change_request",
    "sc_request",
    "sc_req_item",
    "incident",
    "task",
)

# Journal fields: internal notes and customer-visible comments
JOURNAL_FIELDS = ("work_notes", "comments")

# Status field audited twice: the primary name and per-kind aliases
PRIMARY_STATUS_FIELD = "state"
STATUS_FIELD_ALIASES = frozenset({"incident_state"})

ASSIGNEE_FIELD = "assigned_to"
ASSIGNMENT_GROUP_FIELD = "assignment_group"

# Structured fields a caller may write through PATCH /record
UPDATABLE_FIELDS = (
    "state",
    "impact",
    "urgency",
    "priority",
    "assigned_to",
    "assignment_group",
    "short_description",
    "description",
)

RECORD_FIELDS = (
    "sys_id,number,short_description,description,assigned_to,assignment_group,"
    "state,priority,impact,urgency,caller_id,opened_at,sys_class_name,sys_updated_on"
)

CHANGE_FIELDS = ",".join(
    [
        "sys_id", "number", "type", "priority", "risk", "impact", "category", "cmdb_ci",
        "requested_by", "start_date", "end_date", "short_description", "description",
        "justification", "implementation_plan", "risk_and_impact_analysis",
        "backout_plan", "test_plan", "assigned_to", "assignment_group", "state",
        "sys_updated_on",
    ]
)

APPROVAL_LIST_FIELDS = "sys_id,state,approver,sysapproval,sys_created_on,sys_updated_on"
APPROVAL_DETAIL_FIELDS = "sys_id,sysapproval,approver,state,comments,sys_created_on,sys_updated_on"
IDENTITY_FIELDS = "sys_id,name,user_name,email,active"
USER_SEARCH_FIELDS = "sys_id,name,user_name,email"
GROUP_SEARCH_FIELDS = "sys_id,name"
# Fields matched (exact, then partial) when looking a user or group up by text
USER_MATCH_FIELDS = ("user_name", "name", "email")
GROUP_MATCH_FIELDS = ("name",)
JOURNAL_ENTRY_FIELDS = "sys_created_on,sys_created_by,element,value"
AUDIT_ENTRY_FIELDS = "sys_created_on,sys_created_by,fieldname,oldvalue,newvalue,tablename"

# Terminal states excluded from work lists
INCIDENT_CLOSED_STATES = ("6", "7")
TASK_CLOSED_STATES = ("3", "6", "7")
# Classes listed separately, so excluded from the generic task list
TASK_EXCLUDED_CLASSES = ("incident", "sc_req_item")
APPROVAL_PENDING_STATE = "requested"

# Page sizes
LIST_LIMIT = 100
SEARCH_LIMIT = 20
FEED_LIMIT = 500
GROUP_PAGE_SIZE = 500
JOURNAL_TRANSCRIPT_LIMIT = 1000

# Provenance stamp appended to journal text and rendered history lines
PROVENANCE_PREFIX = "#Cont. by"

# Store key prefixes
CACHE_PREFIX_SESSION = "session"
CACHE_PREFIX_DISPLAY_NAME = "name"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"
