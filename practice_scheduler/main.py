import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from practice_scheduler.core import config
from practice_scheduler.database import Base, engine, ensure_scheduling_schema
from practice_scheduler.models import appointment, client, practitioner, series, session_type, time_block  # noqa: F401
from practice_scheduler.routes import appointment_routes, availability_routes

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

config.validate_runtime_config()

app = FastAPI(title='Practice Scheduler')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed input is a 400 at this boundary; 422 is reserved for state rule violations.
    errors = [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg', 'Invalid value')}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'detail': errors})


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Practice Scheduler API Running'}


app.include_router(availability_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
