import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from app.core.config import Settings, settings as default_settings
from app.core.errors import register_exception_handlers
from app.core.monitoring import Monitoring, monitoring_middleware
from app.crud import user as crud_user
from app.db.session import Base, build_engine, build_session_factory
from app.models import models, product  # noqa: F401  (register tables on Base)
from app.routers.users import router as users_router
from app.routers.cart import router as cart_router
from app.routers.products import router as products_router
from app.routers.mail import router as mail_router
from app.services.email_service import EmailService, build_mailer
from app.services.image_service import S3ImageStorage

logger = logging.getLogger(__name__)


def seed_admin(session_factory, settings: Settings) -> None:
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    db = session_factory()
    try:
        admin = crud_user.ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_USERNAME)
        logger.info(f"Admin account ready (user {admin.id})")
    finally:
        db.close()


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    mailer=None,
    image_storage: Optional[S3ImageStorage] = None,
) -> FastAPI:
    """Build the API with explicitly constructed collaborators; tests pass their own."""
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    app = FastAPI(
        title=settings.APP_NAME,
        description="Amazon Clone storefront API: users, products, cart and transactional email",
        version="1.0.0"
    )

    # DB init
    engine = engine or build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    seed_admin(app.state.session_factory, settings)

    # Collaborators
    app.state.email_service = EmailService(mailer or build_mailer(settings), settings)
    app.state.image_storage = image_storage or S3ImageStorage.from_settings(settings)
    app.state.monitoring = Monitoring()

    # Middleware
    app.middleware("http")(monitoring_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register endpoints
    app.include_router(users_router, prefix="/api", tags=["Users"])
    app.include_router(products_router, prefix="/api/products", tags=["Product"])
    app.include_router(cart_router, prefix="/api/cart", tags=["Cart"])
    app.include_router(mail_router, prefix="/api", tags=["Mail"])

    # proxy check
    @app.get("/api/test", tags=["Health"])
    def proxy_check():
        return {"message": "API proxy working!"}

    @app.get("/api/health", tags=["Health"])
    def health():
        return app.state.monitoring.get_health_status()

    return app


app = create_app()
