"""
Snapshot audit endpoint.
"""
import logging
from fastapi import APIRouter, HTTPException, status

from app.services.audit_service import AuditService
from app.schemas.audit import AuditResponse, SnapshotRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=AuditResponse)
def audit_snapshot(snapshot: SnapshotRequest):
    """
    Run a full audit over a controller snapshot.

    Returns issues ordered by severity, port profile suggestions, port
    statistics and the hardening measures already in place.
    """
    try:
        service = AuditService()
        audit_result = service.run_audit(snapshot)
    except ValueError as e:
        logger.error(f"Audit error: devices={len(snapshot.devices)}, error={e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    logger.info(
        f"Audit completed: switches={audit_result['switch_count']}, "
        f"risk_score={audit_result['risk_score']}, "
        f"issues_count={audit_result['total_issues']}"
    )
    return AuditResponse(**audit_result)
