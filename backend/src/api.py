import logging
import os
from typing import Dict, List, Optional

import sentry_sdk
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sentry_sdk.integrations.aws_lambda import AwsLambdaIntegration

from analysis.analyze import analyze
from analysis.uptime import INVULNERABLE
from report import Fight

SENTRY_DSN = os.environ.get("SENTRY_DSN")
SENTRY_ENABLED = SENTRY_DSN is not None
if SENTRY_ENABLED:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        traces_sample_rate=float(os.environ.get("SENTRY_TRACES_SAMPLE_RATE", 0.05)),
        attach_stacktrace=True,
        integrations=(
            [AwsLambdaIntegration()]
            if os.environ.get("AWS_EXECUTION_ENV") is not None
            else []
        ),
    )
app = FastAPI()


async def catch_exceptions_middleware(request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logging.exception(e)
        return Response("Internal server error", status_code=500)


# Add this middleware first so 500 errors have CORS headers
app.middleware("http")(catch_exceptions_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)


class SourceModel(BaseModel):
    id: int
    name: str = ""
    # pet id -> owner id
    pets: Dict[int, int] = {}


class EncounterModel(BaseModel):
    id: int
    name: str


class FightModel(BaseModel):
    id: int = 0
    start_time: int
    end_time: int
    source: SourceModel
    encounter: Optional[EncounterModel] = None
    friendlies: List[int] = []
    enemies: List[int] = []


class InvulnModel(BaseModel):
    entity_id: int
    start: int
    end: int
    kind: str = INVULNERABLE


class AnalyzeRequest(BaseModel):
    fight: FightModel
    events: List[dict]
    invulns: List[InvulnModel] = []
    buff_ids: List[int] = []
    debuff_ids: List[int] = []


class AnalyzeResponse(BaseModel):
    data: dict


@app.post("/analyze_fight")
async def analyze_fight(response: Response, request: AnalyzeRequest):
    if not request.events:
        response.status_code = 400
        return {"error": "Can not analyze a fight without events"}

    fight = Fight.from_dict(request.fight.model_dump(), request.events)
    logging.info(
        f"Analyzing fight {fight.id} for {fight.source.name or fight.source.id} "
        f"({len(fight.events)} events)"
    )

    data = analyze(
        fight,
        buff_ids=request.buff_ids,
        debuff_ids=request.debuff_ids,
        invulns=[invuln.model_dump() for invuln in request.invulns],
    )
    return AnalyzeResponse(data=data)
