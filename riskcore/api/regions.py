"""Regional risk profile administration."""
from fastapi import APIRouter

from riskcore.database import get_store
from riskcore.errors import ProfileNotFoundError
from riskcore.logger import get_logger
from riskcore.models.region import RegionalRiskProfile, RegionalRiskProfileUpdate
from riskcore.models.signal import utcnow

logger = get_logger(__name__)

router = APIRouter()


@router.get("/")
def list_regions():
    profiles = get_store().list_region_profiles()
    return {"data": [p.model_dump(mode="json") for p in profiles], "count": len(profiles)}


@router.get("/{region_id}")
def get_region(region_id: str):
    profile = get_store().get_region_profile(region_id)
    if profile is None:
        raise ProfileNotFoundError(f"region {region_id} is not configured")
    return {"data": profile.model_dump(mode="json")}


@router.put("/{region_id}")
def put_region(region_id: str, update: RegionalRiskProfileUpdate):
    profile = RegionalRiskProfile(
        region_id=region_id,
        **update.model_dump(exclude={"updated_by"}),
        updated_at=utcnow(),
        updated_by=update.updated_by,
    )
    get_store().upsert_region_profile(profile)
    logger.info("region_profile_updated", region_id=region_id, fraud_multiplier=profile.fraud_multiplier,
                updated_by=update.updated_by)
    return {"status": "updated", "data": profile.model_dump(mode="json")}
