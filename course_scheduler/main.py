# course_scheduler/main.py
import time
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from course_scheduler.config import settings
from course_scheduler.database import Base, engine
from course_scheduler.errors import SchedulingError
from course_scheduler.logging_config import setup_logging
from course_scheduler.routers import catalog, enrollments, timetables


setup_logging()
logger = logging.getLogger("app")


# 建立資料表（若不存在）
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Course Timetable & Enrollment Backend", version="1.0.0")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        ms = int((time.time() - start) * 1000)
        logger.info("%s %s -> %s (%dms)", request.method, request.url.path, response.status_code, ms)
        return response
    except Exception:
        ms = int((time.time() - start) * 1000)
        logger.exception("Unhandled error %s %s (%dms)", request.method, request.url.path, ms)
        raise


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(catalog.router)
app.include_router(timetables.router)
app.include_router(timetables.admin_router)
app.include_router(enrollments.router)


@app.get("/")
def root():
    return {"message": "Course timetable backend is running!"}
