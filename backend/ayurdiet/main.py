import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy import select
from ayurdiet.config import get_settings
from ayurdiet.database import engine, Base, async_session
from ayurdiet.routers import admin, diet_plans, dietitian, feedback, patients, todos
from ayurdiet.routers import auth as auth_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_demo_users():
    """Create the demo accounts if they don't exist. Idempotent."""
    from ayurdiet.models.user import User

    demo_users = [
        {"id": "demo-admin", "email": "admin@ayurdiet.local", "name": "Admin", "role": "admin"},
        {
            "id": "demo-dietitian", "email": "dietitian@ayurdiet.local", "name": "Dr. Meera Rao",
            "role": "dietitian", "linked_patient_ids": [], "specialization": "Ayurvedic Nutrition",
            "years_of_experience": 8, "is_verified": True, "rating": 4.8,
        },
        {"id": "demo-patient-1", "email": "arjun@ayurdiet.local", "name": "Arjun Sharma", "role": "patient"},
        {"id": "demo-patient-2", "email": "priya@ayurdiet.local", "name": "Priya Nair", "role": "patient"},
    ]

    async with async_session() as session:
        for u in demo_users:
            existing = await session.scalar(select(User).where(User.email == u["email"]))
            if not existing:
                session.add(User(**u))
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables then seed demo users
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.seed_demo_users:
        await seed_demo_users()
        logger.info("Demo users seeded")
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="AyurDiet Coordination API",
    description="Patient and dietitian coordination: assignment, Ayurvedic intake, diet plans and todos",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Roster and profile responses change per request; keep browsers from caching them."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


app.add_middleware(NoCacheMiddleware)

app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
app.include_router(dietitian.router, prefix="/api/dietitian", tags=["Dietitian"])
app.include_router(patients.router, prefix="/api/patients", tags=["Patients"])
app.include_router(todos.router, prefix="/api/todos", tags=["Todos"])
app.include_router(diet_plans.router, prefix="/api/diet-plans", tags=["Diet Plans"])
app.include_router(feedback.router, prefix="/api/feedback", tags=["Feedback"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "ayurdiet-api"}
