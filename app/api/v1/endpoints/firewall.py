"""
Firewall rule analysis endpoint.
"""
import logging
from fastapi import APIRouter, HTTPException, status

from app.schemas.audit import FirewallAnalysisResponse, SnapshotRequest
from app.services.audit_service import AuditService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/overlaps", response_model=FirewallAnalysisResponse)
def analyze_firewall_overlaps(snapshot: SnapshotRequest):
    """
    Report overlapping firewall rules within each ruleset, plus rules that
    allow any-to-any traffic.
    """
    try:
        result = AuditService().analyze_firewall(snapshot)
    except ValueError as e:
        logger.error(f"Firewall analysis error: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    logger.info(
        f"Firewall analysis completed: rules={result['rule_count']}, "
        f"overlaps={len(result['overlaps'])}, any_any={len(result['any_any'])}"
    )
    return FirewallAnalysisResponse(**result)
