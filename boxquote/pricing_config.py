"""
Config store for PricingConfig.

Read contract: the most recent row with is_active = true and no valid_until,
by valid_from. Read through on every pricing call, never cached.

Write contract: append-only. Publishing a version closes the previous
active row(s) (valid_until + is_active = false) in the same transaction.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from . import models
from .config import settings
from .errors import NoActivePricingConfig

logger = logging.getLogger(__name__)

PRICING_FIELDS = [
    "price_per_m2_standard",
    "price_per_m2_volume",
    "volume_threshold_m2",
    "min_m2_per_model",
    "price_per_m2_below_minimum",
    "free_shipping_min_m2",
    "free_shipping_max_km",
    "production_days_standard",
    "production_days_printing",
    "quote_validity_days",
]


def find_active_pricing_config(db: Session):
    return db.query(models.PricingConfig).filter(
        models.PricingConfig.is_active.is_(True),
        models.PricingConfig.valid_until.is_(None),
    ).order_by(models.PricingConfig.valid_from.desc(), models.PricingConfig.id.desc()).first()


def get_active_pricing_config(db: Session) -> models.PricingConfig:
    """Active config or NoActivePricingConfig. There is no hardcoded fallback price."""
    config = find_active_pricing_config(db)
    if config is None:
        logger.error("Pricing requested but no active PricingConfig exists")
        raise NoActivePricingConfig()
    return config


def publish_pricing_config(db: Session, values: dict, now: datetime = None) -> models.PricingConfig:
    """Supersede the active version with a new one. Caller commits."""
    now = now or datetime.utcnow()

    superseded = db.query(models.PricingConfig).filter(
        models.PricingConfig.is_active.is_(True),
        models.PricingConfig.valid_until.is_(None),
    ).all()
    for row in superseded:
        row.valid_until = now
        row.is_active = False

    config = models.PricingConfig(
        **{field: values.get(field) for field in PRICING_FIELDS},
        valid_from=now,
        valid_until=None,
        is_active=True,
    )
    db.add(config)
    db.flush()
    logger.info("Published PricingConfig id=%s superseding %s", config.id, [r.id for r in superseded])
    return config


def default_pricing_values() -> dict:
    return {
        "price_per_m2_standard": settings.SEED_PRICE_PER_M2_STANDARD,
        "price_per_m2_volume": settings.SEED_PRICE_PER_M2_VOLUME,
        "volume_threshold_m2": settings.SEED_VOLUME_THRESHOLD_M2,
        "min_m2_per_model": settings.SEED_MIN_M2_PER_MODEL,
        "price_per_m2_below_minimum": None,
        "free_shipping_min_m2": settings.SEED_FREE_SHIPPING_MIN_M2,
        "free_shipping_max_km": settings.SEED_FREE_SHIPPING_MAX_KM,
        "production_days_standard": settings.SEED_PRODUCTION_DAYS_STANDARD,
        "production_days_printing": settings.SEED_PRODUCTION_DAYS_PRINTING,
        "quote_validity_days": settings.SEED_QUOTE_VALIDITY_DAYS,
    }
