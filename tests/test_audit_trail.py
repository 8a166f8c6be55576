"""
Audit trail tests.

Tests cover:
  - record_deletion appends exactly one row and leaves the transaction open
  - list_audit_entries scoping and table filter
  - list_deleted_records across kinds, newest first, with deleter details
  - GET /api/v1/audit and /api/v1/audit/deleted-records
"""

from datetime import datetime, timedelta, timezone

from qms.models import db
from qms.models.audit import AuditEntry
from qms.models.records import BusinessProcess, RiskMatrixEntry
from qms.services import audit_service

QUALITY = "Quality Management"
FINANCE = "Finance"
HR = "Human Resources"

BASE = datetime(2026, 3, 1, 9, 0, 0)


def _audit(table_name, record_id, user_id, business_area=QUALITY, minutes=0):
    return audit_service.record_deletion(
        table_name, record_id, BASE + timedelta(minutes=minutes), user_id, business_area=business_area,
    )


def _deleted(model, user_id, minutes, business_area=QUALITY, **fields):
    record = model(business_area=business_area, **fields)
    record.soft_delete(user_id)
    record.deleted_at = BASE + timedelta(minutes=minutes)
    db.session.add(record)
    db.session.commit()
    return record


# ═══════════════════════════════════════════════════════════════
# RECORDER
# ═══════════════════════════════════════════════════════════════

def test_record_deletion_flushes_single_row(quality_user):
    entry = audit_service.record_deletion(
        "business_processes", 12, datetime.now(timezone.utc), quality_user.id,
        business_area=QUALITY, file_name="sop.pdf", file_url="local://x/sop.pdf",
        file_cleanup_success=False,
    )

    assert entry.id is not None
    assert entry.action == "DELETE"
    assert AuditEntry.query.count() == 1

    data = entry.to_dict()
    assert data["tableName"] == "business_processes"
    assert data["recordId"] == 12
    assert data["fileName"] == "sop.pdf"
    assert data["fileCleanupSuccess"] is False


def test_record_deletion_is_rolled_back_with_caller(quality_user):
    _audit("business_processes", 1, quality_user.id)
    db.session.rollback()
    assert AuditEntry.query.count() == 0


# ═══════════════════════════════════════════════════════════════
# QUERIES
# ═══════════════════════════════════════════════════════════════

def test_audit_entries_scoped_and_newest_first(quality_user):
    _audit("business_processes", 1, quality_user.id, minutes=1)
    _audit("risk_matrix_entries", 2, quality_user.id, minutes=5)
    _audit("risk_matrix_entries", 3, quality_user.id, business_area=FINANCE, minutes=9)
    db.session.commit()

    entries = audit_service.list_audit_entries({QUALITY})
    assert [e.record_id for e in entries] == [2, 1]

    both = audit_service.list_audit_entries({QUALITY, FINANCE})
    assert [e.record_id for e in both] == [3, 2, 1]


def test_audit_entries_table_filter(quality_user):
    _audit("business_processes", 1, quality_user.id)
    _audit("risk_matrix_entries", 2, quality_user.id)
    db.session.commit()

    entries = audit_service.list_audit_entries({QUALITY}, table_name="risk_matrix_entries")
    assert [e.record_id for e in entries] == [2]


def test_deleted_records_span_kinds(quality_user):
    process = _deleted(BusinessProcess, quality_user.id, minutes=1, process_name="Onboarding")
    risk = _deleted(
        RiskMatrixEntry, quality_user.id, minutes=7,
        process_name="Onboarding", issue_description="Missing checks",
    )
    _deleted(BusinessProcess, quality_user.id, minutes=9, business_area=HR, process_name="Payroll")
    db.session.add(BusinessProcess(business_area=QUALITY, process_name="Still active"))
    db.session.commit()

    items = audit_service.list_deleted_records({QUALITY})

    assert [(i["tableName"], i["id"]) for i in items] == [
        ("risk_matrix_entries", risk.id),
        ("business_processes", process.id),
    ]
    assert items[0]["kind"] == "risk_matrix"
    assert items[0]["deletedByUsername"] == quality_user.username
    assert items[0]["deletedByEmail"] == "quality@example.com"
    assert items[1]["process_name"] == "Onboarding"


def test_deleted_records_empty_for_unrelated_area(quality_user):
    _deleted(BusinessProcess, quality_user.id, minutes=1, process_name="Onboarding")
    assert audit_service.list_deleted_records({FINANCE}) == []


# ═══════════════════════════════════════════════════════════════
# API
# ═══════════════════════════════════════════════════════════════

def test_audit_endpoint(client, quality_user, auth_headers):
    _audit("business_processes", 1, quality_user.id, minutes=1)
    _audit("risk_matrix_entries", 2, quality_user.id, minutes=2)
    _audit("risk_matrix_entries", 3, quality_user.id, business_area=FINANCE)
    db.session.commit()

    res = client.get("/api/v1/audit", headers=auth_headers(quality_user))
    assert res.status_code == 200
    data = res.get_json()
    assert data["total"] == 2
    assert [i["recordId"] for i in data["items"]] == [2, 1]

    res = client.get(
        "/api/v1/audit", query_string={"table_name": "business_processes"}, headers=auth_headers(quality_user),
    )
    assert [i["recordId"] for i in res.get_json()["items"]] == [1]


def test_deleted_records_endpoint(client, quality_user, auth_headers):
    _deleted(BusinessProcess, quality_user.id, minutes=1, process_name="Onboarding")

    res = client.get("/api/v1/audit/deleted-records", headers=auth_headers(quality_user))
    assert res.status_code == 200
    data = res.get_json()
    assert data["total"] == 1
    assert data["items"][0]["tableName"] == "business_processes"
    assert data["items"][0]["deletedByEmail"] == "quality@example.com"


def test_audit_endpoints_require_token(client, areas):
    assert client.get("/api/v1/audit").status_code == 401
    assert client.get("/api/v1/audit/deleted-records").status_code == 401
