from __future__ import annotations

import logging

from fastapi import FastAPI

from .config import DEBUG
from .routers import export_xlsx, rosters, units
from .services.policy import default_policy

logger = logging.getLogger(__name__)

app = FastAPI(debug=DEBUG)


@app.on_event("startup")
def startup_event() -> None:
    policy = default_policy()
    logger.info(
        "Application started (%d named budgets, %d per-model ammo units)",
        len(policy.named_character_budgets),
        len(policy.ammo_per_model_units),
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(units.router)
app.include_router(rosters.router)
app.include_router(export_xlsx.router)
