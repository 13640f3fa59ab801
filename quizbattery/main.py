"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses. Service errors are translated to
status codes by the exception handlers below.

Endpoints implemented:
- GET /health
- POST /quiz
- GET /quiz/{quiz_id}
- PUT /quiz/{quiz_id}
- DELETE /quiz/{quiz_id}
- POST /battery?quiz_id=...
- GET /battery/{battery_id}
- PUT /battery/{battery_id}
"""

from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
import os
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services
from .auth import get_current_user_id
from .config import settings
from .errors import BatteryIntegrityError, QuizAppError
from .schemas import BatteryOut, GradeResult, QuizIn, QuizOut, ResolvedBattery, SubmitBatteryIn

app = FastAPI(title="Quiz Battery API")
logger = logging.getLogger("quizbattery.api")
if not logger.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = req_id
    if request.url.path.startswith("/battery"):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
                },
                ensure_ascii=True,
            ),
        )
    return response


@app.exception_handler(QuizAppError)
async def quiz_app_error_handler(request: Request, exc: QuizAppError):
    content = {"error": exc.detail}
    if exc.issues:
        content["issues"] = exc.issues
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(BatteryIntegrityError)
async def integrity_error_handler(request: Request, exc: BatteryIntegrityError):
    logger.error("%s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Something went wrong. Try again later."})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post('/quiz', status_code=201)
def create_quiz(payload: QuizIn, db: Session = Depends(get_session), user_id: str = Depends(get_current_user_id)):
    """Create a quiz authored by the caller and return its id."""
    quiz = services.QuizService(db).create(user_id, payload)
    return {'id': quiz.id}


@app.get('/quiz/{quiz_id}', response_model=QuizOut)
def get_quiz(quiz_id: str, db: Session = Depends(get_session), user_id: str = Depends(get_current_user_id)):
    """Fetch quiz metadata; the question bank is included for the author only."""
    return services.QuizService(db).get(quiz_id, user_id)


@app.put('/quiz/{quiz_id}')
def update_quiz(quiz_id: str, payload: QuizIn, db: Session = Depends(get_session), user_id: str = Depends(get_current_user_id)):
    """Edit a quiz. Adding questions or changing the battery size bumps its version."""
    quiz = services.QuizService(db).update(quiz_id, user_id, payload)
    return {'id': quiz.id, 'version': quiz.version}


@app.delete('/quiz/{quiz_id}')
def delete_quiz(quiz_id: str, db: Session = Depends(get_session), user_id: str = Depends(get_current_user_id)):
    """Delete a quiz and its batteries, unless it is inside its open window."""
    return services.QuizService(db).delete(quiz_id, user_id)


@app.post('/battery', response_model=BatteryOut)
def request_battery(quiz_id: str, response: Response, db: Session = Depends(get_session), user_id: str = Depends(get_current_user_id)):
    """Return the caller's battery for `quiz_id`, generating a new one if needed.

    Responds 201 when a battery was generated and 200 when an existing one
    is still current.
    """
    battery, created = services.BatteryService(db).request(user_id, quiz_id)
    response.status_code = 201 if created else 200
    return BatteryOut(
        id=battery.id,
        quiz_id=battery.quiz_id,
        quiz_version=battery.quiz_version,
        questions=battery.questions,
        complete=battery.complete,
        correct=battery.correct,
    )


@app.get('/battery/{battery_id}', response_model=ResolvedBattery)
def resolve_battery(battery_id: str, db: Session = Depends(get_session), user_id: str = Depends(get_current_user_id)):
    """Return the battery's questions and shuffled choices as text."""
    return services.BatteryService(db).resolve(user_id, battery_id)


@app.put('/battery/{battery_id}', response_model=GradeResult)
def submit_battery(battery_id: str, submission: SubmitBatteryIn, db: Session = Depends(get_session), user_id: str = Depends(get_current_user_id)):
    """Submit answer indices (0-4, one per question) and return the grade.

    Only a submission answering every question completes the battery.
    """
    return services.BatteryService(db).submit(user_id, battery_id, submission.answers)
