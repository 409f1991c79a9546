from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from domus.api.deps import guard
from domus.core.bootstrap import seed_geography
from domus.core.database import get_db
from domus.utils.auth import Principal

router = APIRouter(prefix="/seeder", tags=["Seeder"])


@router.post("/geography")
async def seed_geography_data(
    db: Session = Depends(get_db),
    principal: Principal = Depends(guard("seeder.geography")),
):
    """Load the reference countries and provinces. Safe to call repeatedly."""
    created = seed_geography(db)
    return {"message": "Geography seeded successfully", "created": created}
