"""
Switch port endpoints: topology, profile suggestions and trunk consistency.
"""
import logging
from typing import List
from fastapi import APIRouter, HTTPException, status

from app.schemas.audit import SnapshotRequest
from app.schemas.device import TopologyResponse
from app.schemas.findings import AuditIssue, PortProfileSuggestion
from app.services.audit_service import AuditService
from app.services.topology_extractor import get_lag_aggregate_speed

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/topology", response_model=TopologyResponse)
def extract_topology(snapshot: SnapshotRequest):
    """
    Extract switches with their effective (profile-resolved) port configuration.
    """
    service = AuditService()
    try:
        parsed = service.parse_snapshot(snapshot)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    extractor = service.extract_topology(parsed)
    switches = extractor.extract_switches()
    response = TopologyResponse.from_switches(
        switches,
        extractor.extract_access_point_lookup(),
        get_lag_aggregate_speed,
    )
    logger.info(f"Topology extracted: switches={response.switch_count}, ports={response.port_count}")
    return response


@router.post("/profile-suggestions", response_model=List[PortProfileSuggestion])
def suggest_port_profiles(snapshot: SnapshotRequest):
    """
    Suggest port profiles for trunk ports that share identical VLAN settings.
    """
    try:
        suggestions = AuditService().suggest_profiles(snapshot)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info(f"Profile suggestions generated: count={len(suggestions)}")
    return suggestions


@router.post("/trunk-consistency", response_model=List[AuditIssue])
def check_trunk_consistency(snapshot: SnapshotRequest):
    """
    Compare tagged and native VLANs on both ends of every inter-switch uplink.
    """
    try:
        issues = AuditService().check_trunk_consistency(snapshot)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info(f"Trunk consistency checked: issues={len(issues)}")
    return issues
