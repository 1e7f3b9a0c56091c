from contextlib import asynccontextmanager

from fastapi import FastAPI

from combatcore.api.routers.creatures import router as creatures_router
from combatcore.api.routers.encounter_runtime import router as encounter_runtime_router
from combatcore.api.routers.encounters import router as encounters_router
from combatcore.config import configure_logging
from combatcore.db.init_db import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(title="Encounter Combat Core", lifespan=lifespan)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(creatures_router)
app.include_router(encounters_router)
app.include_router(encounter_runtime_router)
