# electionledger/contract/complaints.py
# Complaints, the append-only audit trail and whole-ledger maintenance
import logging

from ..canonical import canonical_json
from ..config import RESET_SENTINEL_VALUE, ROLES, SENTINEL_KEY, SENTINEL_VALUE
from ..errors import InvalidArgument, NotFound
from ..keys import (
    COMPLAINT_PREFIX,
    LOG_PREFIX,
    complaint_key,
    identity_key,
    log_key,
    prefix_range,
)
from ..models import AuditLogEntry, Complaint
from .router import ContractRouter

logger = logging.getLogger(__name__)

router = ContractRouter(tags=["Complaints & Audit"])

SYSTEM_DID = "system"


def log_action(ctx, action: str, did: str) -> AuditLogEntry:
    """
    Append the audit entry for the current transaction under log-<txId>.
    Called as the last step of every write operation; never exposed directly.
    """
    role = "unknown"
    for prefix in ROLES:
        user = ctx.get_json(identity_key(prefix, did))
        if user:
            role = user.get("role") or prefix
            break
    entry = AuditLogEntry(did=did, role=role, action=action, timestamp=ctx.tx_timestamp, txId=ctx.tx_id)
    ctx.put_json(log_key(ctx.tx_id), entry)
    return entry


def _complaint_key(complaint_id: str) -> str:
    # Listings hand out the full key; accept it as well as the bare transaction id
    if complaint_id.startswith(COMPLAINT_PREFIX):
        return complaint_id
    return complaint_key(complaint_id)


def _with_key(key: str, complaint: dict) -> dict:
    return {"key": key, **complaint}


# === COMPLAINTS ===

@router.transaction("submitComplaint")
def submit_complaint(ctx, did: str, content: str) -> str:
    if not content or not content.strip():
        raise InvalidArgument("Complaint content is empty")
    key = complaint_key(ctx.tx_id)
    complaint = Complaint(did=did, content=content, timestamp=ctx.tx_timestamp)
    ctx.put_json(key, complaint)
    log_action(ctx, "SUBMIT_COMPLAINT", did)
    return canonical_json(_with_key(key, complaint.model_dump(exclude_none=True)))


@router.transaction("replyToComplaint")
def reply_to_complaint(ctx, complaint_id: str, responder_did: str, response_text: str) -> str:
    key = _complaint_key(complaint_id)
    record = ctx.get_json(key)
    if record is None:
        raise NotFound("Complaint not found")
    complaint = Complaint(**record)
    # One reply slot; a second reply replaces the first
    complaint.response = response_text
    complaint.respondedBy = responder_did
    complaint.responseAt = ctx.tx_timestamp
    ctx.put_json(key, complaint)
    log_action(ctx, "REPLY_COMPLAINT", responder_did)
    return canonical_json(_with_key(key, complaint.model_dump(exclude_none=True)))


@router.query("viewComplaints")
def view_complaints(ctx) -> str:
    return canonical_json([_with_key(key, record) for key, record in ctx.scan_json(*prefix_range(COMPLAINT_PREFIX))])


@router.query("listComplaintsByUser")
def list_complaints_by_user(ctx, did: str) -> str:
    return canonical_json([
        _with_key(key, record)
        for key, record in ctx.scan_json(*prefix_range(COMPLAINT_PREFIX))
        if record.get("did") == did
    ])


@router.transaction("deleteComplaint")
def delete_complaint(ctx, complaint_id: str) -> str:
    key = _complaint_key(complaint_id)
    if not ctx.exists(key):
        raise NotFound("Complaint not found")
    ctx.del_state(key)
    log_action(ctx, "DELETE_COMPLAINT", complaint_id)
    return canonical_json({"message": f"Complaint {complaint_id} deleted"})


# === AUDIT LOGS ===

def _audit_entries(ctx):
    entries = [record for _, record in ctx.scan_json(*prefix_range(LOG_PREFIX))]
    return sorted(entries, key=lambda entry: (entry.get("timestamp", ""), entry.get("txId", "")))


@router.query("viewAuditLogs")
def view_audit_logs(ctx) -> str:
    return canonical_json(_audit_entries(ctx))


@router.query("downloadAuditReport")
def download_audit_report(ctx) -> str:
    return view_audit_logs(ctx)


@router.query("searchAuditLogsByUser")
def search_audit_logs_by_user(ctx, did: str) -> str:
    return canonical_json([entry for entry in _audit_entries(ctx) if entry.get("did") == did])


# === SYSTEM ===

@router.transaction("initLedger")
def init_ledger(ctx) -> str:
    ctx.put_state(SENTINEL_KEY, SENTINEL_VALUE)
    log_action(ctx, "INIT_LEDGER", SYSTEM_DID)
    return canonical_json({"message": SENTINEL_VALUE})


@router.transaction("resetSystem")
def reset_system(ctx) -> str:
    """
    Delete every key in the ledger, then re-seed the sentinel.
    No audit entry is written: the sentinel is the only key left behind.
    """
    keys = [key for key, _ in ctx.get_state_by_range("", "")]
    for key in keys:
        ctx.del_state(key)
    ctx.put_state(SENTINEL_KEY, RESET_SENTINEL_VALUE)
    logger.warning(f"Ledger reset by transaction {ctx.tx_id}: {len(keys)} keys deleted")
    return canonical_json({"message": "System reset complete", "deleted": len(keys)})
