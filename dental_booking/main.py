import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from dental_booking.core import config
from dental_booking.core.errors import BookingError
from dental_booking.database import Base, engine, ensure_schema
from dental_booking.models import appointment, availability, dentist, service, user  # noqa: F401
from dental_booking.routes import (
    admin_routes,
    appointment_routes,
    auth_routes,
    availability_routes,
    booking_routes,
    catalog_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(title='Dental Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(BookingError)
async def handle_booking_error(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=500, content={'detail': 'Something went wrong. Please try again.'})


@app.get('/')
def root():
    return {'status': 'Dental Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(catalog_routes.router)
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(booking_routes.router, prefix='/booking')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(admin_routes.router, prefix='/admin')
