import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from groombook.core import config
from groombook.database import Base, engine, ensure_booking_schema
from groombook.models import appointment, appointment_settings, availability_exception, business  # noqa: F401
from groombook.routes import appointment_routes, availability_routes, business_routes, exception_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

config.validate_runtime_config()

app = FastAPI(title='GroomBook Availability API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={'error': 'Internal server error', 'details': str(exc)},
    )


@app.get('/')
def root():
    return {'status': 'GroomBook API Running'}


app.include_router(availability_routes.router, prefix='/availability')
app.include_router(business_routes.router, prefix='/businesses')
app.include_router(exception_routes.router, prefix='/businesses')
app.include_router(appointment_routes.router, prefix='/appointments')
