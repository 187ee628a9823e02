import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from eclinic.core import config
from eclinic.core.logging import configure_logging
from eclinic.database import Base, engine, ensure_appointment_schema
from eclinic.models import appointment, profile, user  # noqa: F401
from eclinic.routes import appointment_routes, availability_routes

app = FastAPI(title='e-clinic scheduling API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize() -> None:
    configure_logging()
    config.validate_runtime_config()

    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'e-clinic API running', 'reference_timezone': config.REFERENCE_TIMEZONE}


app.include_router(availability_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
