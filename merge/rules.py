"""
merge.rules
-----------
Ordered key lists used to read loosely-typed assignment/session records.

- Each list is tried left to right; the first value that is not None wins.
"""

# Identity of a workplace inside an assignment or DB row
WORKPLACE_ID_KEYS = ["workplace_id", "workplaceId", "id"]

# Session-level reads (sessions never use the bare "id")
SESSION_WORKPLACE_ID_KEYS = ["workplace_id", "workplaceId"]
SESSION_ID_KEYS = ["workplace_session_id", "workplaceSessionId"]

# Last-resort chain when hydrating an assignment from its parent session
SESSION_ID_FALLBACK_KEYS = [
    "workplace_session_id",
    "workplaceSessionId",
    "workplace_id",
    "workplaceId",
]

COMPANY_ID_KEYS = ["company_id", "companyId"]
COMPANY_NAME_KEYS = ["company_name", "companyName"]
BRANCH_ID_KEYS = ["branch_id", "branchId"]
BRANCH_NAME_KEYS = ["branch_name", "branchName"]
DEPARTMENT_ID_KEYS = ["department_id", "departmentId"]
DEPARTMENT_NAME_KEYS = ["department_name", "departmentName"]
WORKPLACE_NAME_KEYS = ["workplace_name", "workplaceName"]

# Position candidates as read by the position map builders
POSITION_ID_KEYS = [
    "workplace_position_id",
    "workplacePositionId",
    "position_id",
    "positionId",
    "position",
]
POSITION_NAME_KEYS = [
    "workplace_position_name",
    "workplacePositionName",
    "position_name",
    "positionName",
]

# Position candidates as read when hydrating an assignment (no bare "position")
ASSIGNMENT_POSITION_ID_KEYS = POSITION_ID_KEYS[:4]
ASSIGNMENT_POSITION_NAME_KEYS = POSITION_NAME_KEYS

# Position fields carried by the session itself
SESSION_POSITION_ID_KEYS = ["workplace_position_id", "workplacePositionId"]
SESSION_POSITION_NAME_KEYS = ["workplace_position_name", "workplacePositionName"]
