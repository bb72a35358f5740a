from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..database import get_db
from ..errors import ValidationFailed
from ..pricing_config import get_active_pricing_config, publish_pricing_config

router = APIRouter(prefix="/config/pricing", tags=["pricing"])


def _pricing_errors(values: dict) -> list:
    errors = []
    for field in ("price_per_m2_standard", "price_per_m2_volume", "volume_threshold_m2", "min_m2_per_model"):
        if values[field] <= 0:
            errors.append(f"{field} must be greater than 0")
    if values.get("price_per_m2_below_minimum") is not None and values["price_per_m2_below_minimum"] <= 0:
        errors.append("price_per_m2_below_minimum must be greater than 0")
    for field in ("free_shipping_min_m2", "free_shipping_max_km"):
        if values[field] < 0:
            errors.append(f"{field} cannot be negative")
    for field in ("production_days_standard", "production_days_printing", "quote_validity_days"):
        if values[field] < 1:
            errors.append(f"{field} must be at least 1")
    return errors


@router.get("/", response_model=schemas.PricingConfig)
def get_pricing_config(db: Session = Depends(get_db)):
    return get_active_pricing_config(db)


@router.get("/history", response_model=List[schemas.PricingConfig])
def pricing_history(db: Session = Depends(get_db)):
    return db.query(models.PricingConfig).order_by(
        models.PricingConfig.valid_from.desc(), models.PricingConfig.id.desc()
    ).all()


@router.post("/", response_model=schemas.PricingConfig)
def publish_pricing(config: schemas.PricingConfigCreate, db: Session = Depends(get_db)):
    """Publish a new version. The previous one is closed, never edited or deleted."""
    values = config.model_dump()
    errors = _pricing_errors(values)
    if errors:
        raise ValidationFailed(errors)
    published = publish_pricing_config(db, values)
    db.commit()
    db.refresh(published)
    return published
