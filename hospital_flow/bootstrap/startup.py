from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from hospital_flow.bootstrap.seed_data import (
    default_doctors,
    default_instrument_sets,
    default_patients,
    default_service_requests,
)
from hospital_flow.infrastructure.db.models_sqlalchemy import Base


def initialize_database(engine: Engine) -> bool:
    """Create missing tables; the schema has no migrations."""
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError:
        logging.getLogger(__name__).exception("Failed to initialize database at %s", engine.url)
        return False
    return True


def load_state(container: Any) -> dict[str, int]:
    """Load every collection, seeding the defaults where a key is missing.

    Doctors load first so referral lookups work while patients load.
    """
    counts = {
        "doctors": container.doctor_directory.load(default_doctors),
        "service_requests": container.service_request_board.load(default_service_requests),
        "instrument_sets": container.sterilization_pipeline.load(default_instrument_sets),
        "patients": container.patient_registry.load(default_patients),
    }
    logging.getLogger(__name__).info(
        "Loaded state: %s", ", ".join(f"{key}={value}" for key, value in counts.items())
    )
    return counts
