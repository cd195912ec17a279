"""
Herbstore - Pharmacy E-commerce REST API
Backend for the storefront and the admin back office
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from contextlib import asynccontextmanager
import logging

# Import our modules
from herbstore.config import settings
from herbstore.database import engine, Base, SessionLocal, utcnow
from herbstore.models import (  # noqa: F401  registers every table on Base.metadata
    activity_log, address, admin_user, auth_session, customer, order, otp_code, payment, product
)
from herbstore.routers import otp_auth, admin_auth, orders, addresses, customers, products, payments
from herbstore.services.admin_service import AdminService
from herbstore.services.session_service import SessionService
from herbstore.utils.error_handler import register_exception_handlers
from herbstore.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Startup
    logger.info(f"Starting Herbstore API ({settings.app_env})...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    db = SessionLocal()
    try:
        SessionService(db).purge_expired()
        AdminService(db).bootstrap_admin()
    finally:
        db.close()

    yield

    # Shutdown
    logger.info("Shutting down Herbstore API...")

# Create FastAPI app
app = FastAPI(
    title="Herbstore API",
    description="REST API for the Herbstore pharmacy storefront and admin back office",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add rate limiting
app.state.limiter = limiter

register_exception_handlers(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(otp_auth.router, prefix="/api/auth", tags=["customer authentication"])
app.include_router(admin_auth.router, prefix="/api", tags=["admin authentication"])
app.include_router(orders.router, prefix="/api/order", tags=["orders"])
app.include_router(addresses.router, prefix="/api/customer", tags=["addresses"])
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(products.router, prefix="/api/product", tags=["products"])
app.include_router(payments.router, prefix="/api/payments", tags=["payments"])

@app.get("/")
@limiter.limit("10/minute")
async def root(request: Request):
    """Root endpoint with API information - publicly accessible"""
    return {
        "message": "Herbstore API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "timestamp": utcnow().isoformat()
    }

@app.get("/health")
@limiter.limit("30/minute")
async def health_check(request: Request):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "environment": settings.app_env
    }

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level="info"
    )
